"""Application entry point.

Usage:
    # Development with auto-reload
    uvicorn nutrition_resolver.main:app --reload

    # Or directly
    python -m nutrition_resolver.main
"""

from nutrition_resolver.factory import create_app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from nutrition_resolver.core.config import get_settings

    settings = get_settings()

    uvicorn.run(
        "nutrition_resolver.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.is_development,
        log_level=settings.logging.level.lower(),
    )
