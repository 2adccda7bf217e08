"""Health check endpoints.

Liveness and readiness probes for orchestrators and load balancers.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel, Field

from nutrition_resolver.api.dependencies import get_app_settings
from nutrition_resolver.core.config import Settings  # noqa: TC001


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Health status", examples=["healthy"])
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Current server timestamp",
    )
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Deployment environment")


class ReadinessResponse(HealthResponse):
    """Readiness check response with engine status."""

    provider_count: int = Field(default=0, description="Registered providers")
    providers: list[str] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(
        default_factory=dict,
        description="Status of engine components",
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
)
async def health_check(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> HealthResponse:
    """Check if the service is alive. Does not touch any provider."""
    return HealthResponse(
        status="healthy",
        version=settings.app.version,
        environment=settings.APP_ENV,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={503: {"description": "Resolver not initialized"}},
)
async def readiness_check(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ReadinessResponse | ORJSONResponse:
    """Check if the resolver is up and how many providers it races."""
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        body = ReadinessResponse(
            status="not_ready",
            version=settings.app.version,
            environment=settings.APP_ENV,
            dependencies={"resolver": "unavailable"},
        )
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )

    sources = [p.source_id for p in resolver.providers]
    dependencies = {
        "resolver": "healthy",
        "ai_fallback": "enabled" if resolver.ai_fallback is not None else "disabled",
    }
    return ReadinessResponse(
        status="ready" if sources else "degraded",
        version=settings.app.version,
        environment=settings.APP_ENV,
        provider_count=len(sources),
        providers=sources,
        dependencies=dependencies,
    )
