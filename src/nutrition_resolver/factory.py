"""Application factory for creating FastAPI instances."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from nutrition_resolver.api.v1.router import router as v1_router
from nutrition_resolver.core.config import Settings, get_settings
from nutrition_resolver.core.events.lifespan import lifespan
from nutrition_resolver.core.exceptions import setup_exception_handlers
from nutrition_resolver.core.middleware.request_id import RequestIDMiddleware
from nutrition_resolver.observability.metrics import setup_metrics


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override. If not provided, uses get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Resolves barcodes and product names to one trustworthy nutrition record",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        debug=settings.app.debug,
    )

    # Read by the lifespan and by dependencies.
    app.state.settings = settings

    setup_exception_handlers(app)
    _setup_middleware(app, settings)
    _setup_routers(app, settings)

    # After routes are mounted.
    setup_metrics(app, settings)

    return app


def _setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure middleware stack (last added runs first on request)."""
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "DELETE"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestIDMiddleware)


def _setup_routers(app: FastAPI, settings: Settings) -> None:
    app.include_router(v1_router, prefix=settings.api.v1_prefix)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint returning basic service info."""
        return {
            "service": settings.app.name,
            "version": settings.app.version,
            "docs": "/docs" if settings.is_development else "disabled",
        }
