"""Shared test fixtures and configuration for the Nutrition Resolver tests.

Forces the ``test`` configuration environment before any settings are read,
and provides candidate builders plus fake providers and LLM clients.
"""

from __future__ import annotations

import os


os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402

from nutrition_resolver.core.config import get_settings  # noqa: E402
from nutrition_resolver.resolution.cache import ResultCache  # noqa: E402
from nutrition_resolver.schemas.product import Query  # noqa: E402
from tests.fixtures.fakes import FakeLLMClient, FakeProvider  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Settings are cached per process; tests that patch env need a fresh read."""
    get_settings.cache_clear()


@pytest.fixture
def barcode_query() -> Query:
    return Query.barcode("5000159407236")


@pytest.fixture
def name_query() -> Query:
    return Query.product_name("Greek Yogurt")


@pytest.fixture
def cache() -> ResultCache:
    return ResultCache()


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def make_provider():
    """Factory for ``FakeProvider`` instances."""
    return FakeProvider
