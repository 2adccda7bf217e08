"""HTTP errors and exception handlers.

Resolution never raises to the route layer: an unknown product is a normal
``unresolved`` answer. What does reach the client as an error is a request
that cannot form a query (no digits in a barcode, a name made only of
punctuation) and a resolver that failed to start. Every error body has the
same ``ErrorResponse`` shape and carries the request id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from nutrition_resolver.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import Request


logger = get_logger(__name__)


class ErrorDetail(BaseModel):
    """One problem with the request, optionally tied to a field."""

    code: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
    message: str
    details: list[ErrorDetail] | None = None
    request_id: str | None = None


class AppException(Exception):
    """Base class for errors rendered as ``ErrorResponse``."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: list[ErrorDetail] | None = None,
    ) -> None:
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidQueryException(AppException):
    """The barcode or product name is empty once normalized."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="INVALID_QUERY",
            message=message,
            details=[ErrorDetail(code="EMPTY_AFTER_NORMALIZATION", message=message, field=field)],
        )


class ResolverUnavailableException(AppException):
    """The resolution engine failed to start, so no lookup can run."""

    def __init__(self, message: str = "Nutrition resolver not available") -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error="RESOLVER_UNAVAILABLE",
            message=message,
        )


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: list[ErrorDetail] | None = None,
) -> ORJSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        details=details,
        request_id=getattr(request.state, "request_id", None),
    )
    return ORJSONResponse(status_code=status_code, content=body.model_dump())


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI application."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> ORJSONResponse:
        return _error_response(request, exc.status_code, exc.error, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> ORJSONResponse:
        return _error_response(request, exc.status_code, "HTTP_ERROR", str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> ORJSONResponse:
        details = [
            ErrorDetail(
                code="VALIDATION_ERROR",
                message=error["msg"],
                field=".".join(str(loc) for loc in error["loc"]),
            )
            for error in exc.errors()
        ]
        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            details,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.opt(exception=exc).error("Unhandled exception", path=request.url.path)
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred",
        )
