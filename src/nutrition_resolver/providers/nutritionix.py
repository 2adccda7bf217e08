"""Nutritionix provider.

Tier-1 structured source with per-serving values. Names go through the
natural-language nutrients endpoint, barcodes through the item search.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from nutrition_resolver.providers.base import (
    HTTPProvider,
    clean_text,
    coerce_number,
    make_candidate,
)
from nutrition_resolver.resolution.exceptions import ProviderMalformedError
from nutrition_resolver.schemas.product import NutrientField, QueryKind


if TYPE_CHECKING:
    import httpx

    from nutrition_resolver.schemas.product import Candidate, Query


NUTRITIONIX_FIELDS: Final[dict[NutrientField, str]] = {
    NutrientField.CALORIES: "nf_calories",
    NutrientField.PROTEIN: "nf_protein",
    NutrientField.CARBS: "nf_total_carbohydrate",
    NutrientField.FAT: "nf_total_fat",
    NutrientField.FIBER: "nf_dietary_fiber",
    NutrientField.SUGAR: "nf_sugars",
}


class NutritionixProvider(HTTPProvider):
    """Provider for the Nutritionix track API."""

    source_id = "nutritionix"
    NATURAL_ENDPOINT: Final[str] = "/natural/nutrients"
    ITEM_ENDPOINT: Final[str] = "/search/item"

    def __init__(
        self,
        app_id: str,
        app_key: str,
        base_url: str = "https://trackapi.nutritionix.com/v2",
        *,
        timeout: float = 5.0,
        requests_per_minute: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            requests_per_minute=requests_per_minute,
            http_client=http_client,
        )
        self._headers = {"x-app-id": app_id, "x-app-key": app_key}

    async def _fetch(self, query: Query) -> Candidate | None:
        if query.kind is QueryKind.BARCODE:
            data = await self._request_json(
                "GET", self.ITEM_ENDPOINT, params={"upc": query.value}, headers=self._headers
            )
        else:
            data = await self._request_json(
                "POST",
                self.NATURAL_ENDPOINT,
                json={"query": query.value},
                headers=self._headers,
            )

        foods = (data or {}).get("foods") or []
        if not isinstance(foods, list):
            msg = "'foods' is not a list"
            raise ProviderMalformedError(msg, self.source_id)
        if not foods or not isinstance(foods[0], dict):
            return None
        return self._parse_food(foods[0], query)

    def _parse_food(self, food: dict[str, Any], query: Query) -> Candidate | None:
        name = clean_text(food.get("food_name"))
        if name is None:
            return None
        nutrients = {
            field: coerce_number(food.get(key)) for field, key in NUTRITIONIX_FIELDS.items()
        }
        return make_candidate(
            self.source_id,
            name,
            nutrients,
            serving_grams=coerce_number(food.get("serving_weight_grams")) or 0.0,
            brand=clean_text(food.get("brand_name")),
            barcode=clean_text(food.get("upc")) or (query.value if query.is_barcode else None),
        )
