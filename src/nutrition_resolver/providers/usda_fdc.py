"""USDA FoodData Central provider.

Tier-1 structured source. Both query kinds go through the foods search
endpoint: names as free text, barcodes as a Branded-foods search that is only
accepted when a result's ``gtinUpc`` matches the scanned code. Search results
report nutrients per 100 g, keyed by FDC nutrient id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from nutrition_resolver.providers.base import (
    HTTPProvider,
    clean_text,
    coerce_number,
    make_candidate,
)
from nutrition_resolver.providers.units import (
    REFERENCE_PORTION_G,
    kj_to_kcal,
    scale_from_100g,
    to_grams,
)
from nutrition_resolver.resolution.exceptions import ProviderMalformedError
from nutrition_resolver.schemas.product import NutrientField, QueryKind, normalize_barcode


if TYPE_CHECKING:
    import httpx

    from nutrition_resolver.schemas.product import Candidate, Query


# FDC nutrient ids. Energy has several ids; the first present wins.
ENERGY_NUTRIENT_IDS: Final[tuple[int, ...]] = (1008, 2047, 2048, 1062)
FDC_NUTRIENT_IDS: Final[dict[int, NutrientField]] = {
    1003: NutrientField.PROTEIN,
    1005: NutrientField.CARBS,
    1004: NutrientField.FAT,
    1079: NutrientField.FIBER,
    2000: NutrientField.SUGAR,
}


class USDAFoodDataCentralProvider(HTTPProvider):
    """Provider for the USDA FoodData Central search API."""

    source_id = "usda_fdc"
    SEARCH_ENDPOINT: Final[str] = "/foods/search"
    PAGE_SIZE: Final[int] = 5

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.nal.usda.gov/fdc/v1",
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
        self._api_key = api_key

    async def _fetch(self, query: Query) -> Candidate | None:
        params: dict[str, str | int] = {
            "api_key": self._api_key,
            "query": query.value,
            "pageSize": self.PAGE_SIZE,
        }
        if query.kind is QueryKind.BARCODE:
            params["dataType"] = "Branded"

        data = await self._request_json("GET", self.SEARCH_ENDPOINT, params=params)
        foods = (data or {}).get("foods") or []
        if not isinstance(foods, list):
            msg = "'foods' is not a list"
            raise ProviderMalformedError(msg, self.source_id)

        food = self._select_food(foods, query)
        if food is None:
            return None
        return self._parse_food(food)

    @staticmethod
    def _select_food(foods: list[Any], query: Query) -> dict[str, Any] | None:
        for food in foods:
            if not isinstance(food, dict):
                continue
            if query.kind is QueryKind.PRODUCT_NAME:
                return food
            gtin = normalize_barcode(str(food.get("gtinUpc") or ""))
            if gtin and gtin.lstrip("0") == query.value.lstrip("0"):
                return food
        return None

    def _parse_food(self, food: dict[str, Any]) -> Candidate | None:
        name = clean_text(food.get("description"))
        if name is None:
            return None

        per_100g = self._read_nutrients(food.get("foodNutrients") or [])

        serving_grams = None
        serving_size = coerce_number(food.get("servingSize"))
        serving_unit = clean_text(food.get("servingSizeUnit"))
        if serving_size and serving_unit:
            unit = {"grm": "g", "mlt": "ml"}.get(serving_unit.lower(), serving_unit)
            serving_grams = to_grams(serving_size, unit)
        portion = serving_grams or REFERENCE_PORTION_G

        nutrients = {
            field: scale_from_100g(value, portion) if value is not None else None
            for field, value in per_100g.items()
        }
        gtin = normalize_barcode(str(food.get("gtinUpc") or ""))
        return make_candidate(
            self.source_id,
            name.title() if name.isupper() else name,
            nutrients,
            serving_grams=portion,
            brand=clean_text(food.get("brandName")) or clean_text(food.get("brandOwner")),
            category=clean_text(food.get("foodCategory")),
            barcode=gtin or None,
        )

    @staticmethod
    def _read_nutrients(entries: list[Any]) -> dict[NutrientField, float | None]:
        by_id: dict[int, tuple[float, str]] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            nutrient_id = entry.get("nutrientId")
            value = coerce_number(entry.get("value"))
            if isinstance(nutrient_id, int) and value is not None:
                by_id[nutrient_id] = (value, str(entry.get("unitName") or "").lower())

        values: dict[NutrientField, float | None] = dict.fromkeys(NutrientField)
        for energy_id in ENERGY_NUTRIENT_IDS:
            if energy_id in by_id:
                amount, unit = by_id[energy_id]
                values[NutrientField.CALORIES] = kj_to_kcal(amount) if unit == "kj" else amount
                break
        for nutrient_id, field in FDC_NUTRIENT_IDS.items():
            if nutrient_id in by_id:
                values[field] = by_id[nutrient_id][0]
        return values
