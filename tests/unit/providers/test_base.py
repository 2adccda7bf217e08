"""Unit tests for the provider error-containment boundary.

Tests cover:
- lookup() never raising
- Per-call timeouts
- HTTP error, 404 and body mapping in HTTPProvider
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from nutrition_resolver.providers.base import (
    BaseProvider,
    HTTPProvider,
    coerce_number,
    make_candidate,
)
from nutrition_resolver.resolution.exceptions import (
    ProviderMalformedError,
    ProviderUnavailableError,
)
from nutrition_resolver.schemas.product import NutrientField, Query, QueryKind
from tests.factories.candidates import build_candidate


pytestmark = pytest.mark.unit

BASE_URL = "https://api.example.test/v1"


class ScriptedProvider(BaseProvider):
    """Provider whose _fetch behavior is set per test."""

    source_id = "scripted"
    supported_kinds = frozenset({QueryKind.PRODUCT_NAME})

    def __init__(self, behavior, **kwargs) -> None:
        super().__init__(**kwargs)
        self.behavior = behavior

    async def _fetch(self, query):
        return await self.behavior(query)


class EchoHTTPProvider(HTTPProvider):
    """HTTP provider exposing _request_json for tests."""

    source_id = "echo"

    async def _fetch(self, query):
        return None


class TestHelpers:
    """Tests for number coercion and candidate building."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(12, 12.0), (1.5, 1.5), ("3,4", 3.4), (" 7 ", 7.0), ("n/a", None), (None, None),
         (True, None), ([1], None), ("nan", None), ("inf", None), ("-Infinity", None),
         (float("nan"), None), (float("inf"), None)],
    )
    def test_coerce_number(self, value: object, expected: float | None) -> None:
        assert coerce_number(value) == expected

    def test_make_candidate_tracks_supplied_fields(self) -> None:
        """Should default missing nutrients to 0 and leave them out of supplied_fields."""
        candidate = make_candidate(
            "scripted",
            "Cola",
            {NutrientField.CALORIES: 139.0, NutrientField.FAT: None},
            serving_grams=330.0,
        )

        assert candidate.calories == 139.0
        assert candidate.fat_g == 0.0
        assert candidate.supplied_fields == (NutrientField.CALORIES,)


class TestLookupBoundary:
    """Tests for BaseProvider.lookup."""

    async def test_returns_candidate(self) -> None:
        candidate = build_candidate("scripted")

        async def answer(query):
            return candidate

        provider = ScriptedProvider(answer)

        assert await provider.lookup(Query.product_name("yogurt")) is candidate

    async def test_unsupported_kind_returns_none(self) -> None:
        """Should not call _fetch for unsupported query kinds."""
        calls = []

        async def answer(query):
            calls.append(query)

        provider = ScriptedProvider(answer)

        assert await provider.lookup(Query.barcode("5000159407236")) is None
        assert calls == []

    async def test_timeout_returns_none(self) -> None:
        """Should give up after the per-call timeout."""

        async def slow(query):
            await asyncio.sleep(1.0)

        provider = ScriptedProvider(slow, timeout=0.05)

        assert await provider.lookup(Query.product_name("yogurt")) is None

    @pytest.mark.parametrize(
        "error",
        [
            ProviderUnavailableError("down", "scripted"),
            ProviderMalformedError("bad body", "scripted"),
            KeyError("surprise"),
        ],
    )
    async def test_failures_return_none(self, error: Exception) -> None:
        """Should swallow every failure at the boundary."""

        async def fail(query):
            raise error

        provider = ScriptedProvider(fail)

        assert await provider.lookup(Query.product_name("yogurt")) is None


class TestRequestJson:
    """Tests for HTTPProvider._request_json."""

    @pytest.fixture
    async def provider(self):
        client = httpx.AsyncClient()
        provider = EchoHTTPProvider(BASE_URL, http_client=client)
        yield provider
        await client.aclose()

    @respx.mock
    async def test_decodes_object(self, provider: EchoHTTPProvider) -> None:
        route = respx.get(f"{BASE_URL}/items").mock(
            return_value=httpx.Response(200, json={"ok": True})
        )

        data = await provider._request_json("GET", "/items", params={"q": "cola"})

        assert data == {"ok": True}
        assert route.calls.last.request.url.params["q"] == "cola"

    @respx.mock
    async def test_not_found_is_none(self, provider: EchoHTTPProvider) -> None:
        respx.get(f"{BASE_URL}/items").mock(return_value=httpx.Response(404))

        assert await provider._request_json("GET", "/items") is None

    @respx.mock
    async def test_server_error_is_unavailable(self, provider: EchoHTTPProvider) -> None:
        respx.get(f"{BASE_URL}/items").mock(return_value=httpx.Response(503))

        with pytest.raises(ProviderUnavailableError):
            await provider._request_json("GET", "/items")

    @respx.mock
    async def test_connection_error_is_unavailable(self, provider: EchoHTTPProvider) -> None:
        respx.get(f"{BASE_URL}/items").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ProviderUnavailableError):
            await provider._request_json("GET", "/items")

    @respx.mock
    async def test_invalid_json_is_malformed(self, provider: EchoHTTPProvider) -> None:
        respx.get(f"{BASE_URL}/items").mock(return_value=httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderMalformedError):
            await provider._request_json("GET", "/items")

    @respx.mock
    async def test_non_object_is_malformed(self, provider: EchoHTTPProvider) -> None:
        respx.get(f"{BASE_URL}/items").mock(return_value=httpx.Response(200, json=[1, 2]))

        with pytest.raises(ProviderMalformedError):
            await provider._request_json("GET", "/items")

    async def test_owns_client_created_on_initialize(self) -> None:
        """Should create and close its own client when none is injected."""
        provider = EchoHTTPProvider(BASE_URL)

        await provider.initialize()
        assert provider._http is not None
        await provider.shutdown()

        assert provider._http is None
