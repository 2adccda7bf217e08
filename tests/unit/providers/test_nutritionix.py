"""Unit tests for the Nutritionix provider."""

from __future__ import annotations

import httpx
import orjson
import pytest
import respx

from nutrition_resolver.providers.nutritionix import NutritionixProvider
from nutrition_resolver.schemas.product import Query
from tests.fixtures.provider_payloads import create_nutritionix_response


pytestmark = pytest.mark.unit

BASE_URL = "https://trackapi.nutritionix.com/v2"


@pytest.fixture
async def provider():
    client = httpx.AsyncClient()
    provider = NutritionixProvider("app-id", "app-key", BASE_URL, http_client=client)
    yield provider
    await client.aclose()


class TestNutritionixProvider:
    """Tests for NutritionixProvider."""

    @respx.mock
    async def test_natural_language_query(self, provider: NutritionixProvider) -> None:
        """Should POST the name and read the first food."""
        route = respx.post(f"{BASE_URL}/natural/nutrients").mock(
            return_value=httpx.Response(200, json=create_nutritionix_response())
        )

        candidate = await provider.lookup(Query.product_name("Snickers bar"))

        assert candidate is not None
        assert candidate.source_id == "nutritionix"
        assert candidate.product_name == "Snickers Bar"
        assert candidate.brand == "Mars"
        assert candidate.serving_grams == 52.0
        assert candidate.calories == 250.0
        assert candidate.fiber_g == 1.2
        assert candidate.barcode is None

        request = route.calls.last.request
        assert request.headers["x-app-id"] == "app-id"
        assert request.headers["x-app-key"] == "app-key"
        assert orjson.loads(request.content) == {"query": "snickers bar"}

    @respx.mock
    async def test_barcode_query(self, provider: NutritionixProvider) -> None:
        """Should look up by UPC and fall back to the query barcode."""
        route = respx.get(f"{BASE_URL}/search/item").mock(
            return_value=httpx.Response(200, json=create_nutritionix_response())
        )

        candidate = await provider.lookup(Query.barcode("040000424314"))

        assert candidate is not None
        assert candidate.barcode == "040000424314"
        assert route.calls.last.request.url.params["upc"] == "040000424314"

    @respx.mock
    async def test_unknown_upc(self, provider: NutritionixProvider) -> None:
        respx.get(f"{BASE_URL}/search/item").mock(
            return_value=httpx.Response(404, json={"message": "resource not found"})
        )

        assert await provider.lookup(Query.barcode("040000424314")) is None

    @respx.mock
    async def test_unauthorized_is_contained(self, provider: NutritionixProvider) -> None:
        respx.post(f"{BASE_URL}/natural/nutrients").mock(return_value=httpx.Response(401))

        assert await provider.lookup(Query.product_name("apple")) is None
