"""Request ID middleware.

Reuses a well-formed incoming ``X-Request-ID`` or generates one, stores it
on ``request.state`` for error bodies, and binds it to the logging context
for the lifetime of the request so every log line of a resolution carries
it.
"""

from __future__ import annotations

import re
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from nutrition_resolver.observability.logging import log_context


if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp


# Caller-supplied IDs end up in log lines and response headers.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(incoming: str | None) -> str:
    """Return ``incoming`` if it is a safe identifier, else a fresh UUID4."""
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request and response."""

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(self.header_name))
        request.state.request_id = request_id

        with log_context(request_id=request_id):
            response = await call_next(request)

        response.headers[self.header_name] = request_id
        return response
