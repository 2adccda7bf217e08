"""Integration test fixtures.

The app is built with the ``test`` configuration and driven in-process over
``httpx.ASGITransport``. The lifespan is not run: each test installs a
resolver wired to fake providers on ``app.state`` instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient

from nutrition_resolver.core.config import Settings
from nutrition_resolver.factory import create_app
from nutrition_resolver.resolution.cache import ResultCache
from nutrition_resolver.resolution.fallback import AIFallbackParser
from nutrition_resolver.resolution.orchestrator import NutritionResolver
from nutrition_resolver.schemas.product import QueryKind
from tests.factories.candidates import build_candidate
from tests.fixtures.fakes import FakeLLMClient, FakeProvider
from tests.fixtures.llm_responses import UNKNOWN_REPLY


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI


API_PREFIX = "/api/v1/nutrition"


@pytest.fixture
def test_settings() -> Settings:
    return Settings()


@pytest.fixture
def llm_client() -> FakeLLMClient:
    return FakeLLMClient(UNKNOWN_REPLY)


@pytest.fixture
def resolver(llm_client: FakeLLMClient) -> NutritionResolver:
    """Two agreeing tier-1 sources plus a barcode-only source that knows nothing."""
    providers = [
        FakeProvider("usda_fdc", build_candidate("usda_fdc", barcode="5000159407236")),
        FakeProvider("nutritionix", build_candidate("nutritionix", barcode="5000159407236")),
        FakeProvider("upcitemdb", None, kinds=frozenset({QueryKind.BARCODE})),
    ]
    return NutritionResolver(
        providers,
        ResultCache(),
        ai_fallback=AIFallbackParser(llm_client),
        early_exit_min_score=1.01,
    )


@pytest.fixture
def app(test_settings: Settings, resolver: NutritionResolver) -> FastAPI:
    app = create_app(test_settings)
    app.state.resolver = resolver
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client for the app under test."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
