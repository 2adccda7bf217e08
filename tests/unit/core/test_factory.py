"""Unit tests for the application factory."""

from __future__ import annotations

import pytest

from nutrition_resolver.core.config import Settings
from nutrition_resolver.factory import create_app


pytestmark = pytest.mark.unit


def _paths(settings: Settings) -> set[str]:
    app = create_app(settings)
    return {route.path for route in app.routes}  # type: ignore[attr-defined]


class TestCreateApp:
    """Tests for create_app."""

    def test_registers_routes_under_prefix(self) -> None:
        paths = _paths(Settings())

        assert {
            "/",
            "/api/v1/nutrition/health",
            "/api/v1/nutrition/ready",
            "/api/v1/nutrition/products/barcode/{barcode}",
            "/api/v1/nutrition/products/search",
            "/api/v1/nutrition/cache/stats",
            "/api/v1/nutrition/cache/barcode/{barcode}",
            "/api/v1/nutrition/cache/search",
            "/api/v1/nutrition/cache",
        } <= paths

    def test_custom_prefix(self) -> None:
        paths = _paths(Settings(api={"v1_prefix": "/nutrition"}))

        assert "/nutrition/products/search" in paths

    def test_docs_hidden_outside_development(self) -> None:
        app = create_app(Settings())

        assert app.docs_url is None
        assert app.openapi_url is None

    def test_stores_settings_on_state(self) -> None:
        settings = Settings()

        app = create_app(settings)

        assert app.state.settings is settings
        assert app.title == "Nutrition Resolver"
