"""Open Food Facts provider.

Community-maintained product database. Barcode lookups hit the product
endpoint; name lookups use the simple search endpoint and take the first
product. Nutriments are reported per 100 g (sometimes also per serving) and
energy may be given only in kJ.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from nutrition_resolver.observability.logging import get_logger
from nutrition_resolver.providers.base import (
    HTTPProvider,
    clean_text,
    coerce_number,
    make_candidate,
)
from nutrition_resolver.providers.units import (
    REFERENCE_PORTION_G,
    kj_to_kcal,
    parse_serving_size,
    scale_from_100g,
)
from nutrition_resolver.resolution.exceptions import ProviderMalformedError
from nutrition_resolver.schemas.product import NutrientField, QueryKind


if TYPE_CHECKING:
    from nutrition_resolver.schemas.product import Candidate, Query

logger = get_logger(__name__)


# Nutriment key prefixes; "_100g" or "_serving" is appended.
OFF_NUTRIMENT_KEYS: Final[dict[NutrientField, str]] = {
    NutrientField.PROTEIN: "proteins",
    NutrientField.CARBS: "carbohydrates",
    NutrientField.FAT: "fat",
    NutrientField.FIBER: "fiber",
    NutrientField.SUGAR: "sugars",
}


class OpenFoodFactsProvider(HTTPProvider):
    """Provider for the Open Food Facts API."""

    source_id = "open_food_facts"
    PRODUCT_ENDPOINT: Final[str] = "/api/v0/product/{barcode}.json"
    SEARCH_ENDPOINT: Final[str] = "/cgi/search.pl"

    async def _fetch(self, query: Query) -> Candidate | None:
        if query.kind is QueryKind.BARCODE:
            data = await self._request_json(
                "GET", self.PRODUCT_ENDPOINT.format(barcode=query.value)
            )
            if data is None or data.get("status") != 1:
                return None
            product = data.get("product")
        else:
            data = await self._request_json(
                "GET",
                self.SEARCH_ENDPOINT,
                params={
                    "search_terms": query.value,
                    "search_simple": "1",
                    "action": "process",
                    "json": "1",
                    "page_size": "1",
                },
            )
            products = (data or {}).get("products") or []
            if not isinstance(products, list) or not products:
                return None
            product = products[0]

        if not isinstance(product, dict):
            msg = "Product payload is not an object"
            raise ProviderMalformedError(msg, self.source_id)
        return self._parse_product(product, query)

    def _parse_product(self, product: dict[str, Any], query: Query) -> Candidate | None:
        name = clean_text(product.get("product_name")) or clean_text(
            product.get("generic_name")
        )
        if name is None:
            logger.debug("OFF product has no name", query=query.key)
            return None

        nutriments = product.get("nutriments")
        if not isinstance(nutriments, dict):
            nutriments = {}

        serving_grams = parse_serving_size(clean_text(product.get("serving_size")))
        per_100g = self._read_nutriments(nutriments, "_100g")
        if any(v is not None for v in per_100g.values()):
            portion = serving_grams or REFERENCE_PORTION_G
            nutrients = {
                field: scale_from_100g(value, portion) if value is not None else None
                for field, value in per_100g.items()
            }
        else:
            # Only per-serving figures; portion stays unknown without a label.
            portion = serving_grams or 0.0
            nutrients = self._read_nutriments(nutriments, "_serving")

        return make_candidate(
            self.source_id,
            name,
            nutrients,
            serving_grams=portion,
            brand=clean_text(product.get("brands")),
            category=self._first_category(product.get("categories")),
            barcode=clean_text(product.get("code")),
        )

    @staticmethod
    def _read_nutriments(
        nutriments: dict[str, Any], suffix: str
    ) -> dict[NutrientField, float | None]:
        calories = coerce_number(nutriments.get(f"energy-kcal{suffix}"))
        if calories is None:
            kilojoules = coerce_number(nutriments.get(f"energy-kj{suffix}"))
            if kilojoules is None:
                kilojoules = coerce_number(nutriments.get(f"energy{suffix}"))
            if kilojoules is not None:
                calories = kj_to_kcal(kilojoules)

        values: dict[NutrientField, float | None] = {NutrientField.CALORIES: calories}
        for field, key in OFF_NUTRIMENT_KEYS.items():
            values[field] = coerce_number(nutriments.get(f"{key}{suffix}"))
        return values

    @staticmethod
    def _first_category(categories: object) -> str | None:
        text = clean_text(categories)
        if text is None:
            return None
        return text.split(",")[0].strip() or None
