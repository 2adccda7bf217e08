"""Edamam nutrition analysis provider (names only).

The nutrition-data endpoint analyses one ingredient line and reports totals
for the weight it assumed, so ``totalWeight`` is the serving size.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from nutrition_resolver.providers.base import HTTPProvider, coerce_number, make_candidate
from nutrition_resolver.schemas.product import NutrientField, QueryKind


if TYPE_CHECKING:
    import httpx

    from nutrition_resolver.schemas.product import Candidate, Query


EDAMAM_NUTRIENT_CODES: Final[dict[NutrientField, str]] = {
    NutrientField.PROTEIN: "PROCNT",
    NutrientField.CARBS: "CHOCDF",
    NutrientField.FAT: "FAT",
    NutrientField.FIBER: "FIBTG",
    NutrientField.SUGAR: "SUGAR",
}


class EdamamProvider(HTTPProvider):
    """Provider for the Edamam nutrition-data API."""

    source_id = "edamam"
    supported_kinds = frozenset({QueryKind.PRODUCT_NAME})
    NUTRITION_ENDPOINT: Final[str] = "/nutrition-data"

    def __init__(
        self,
        app_id: str,
        app_key: str,
        base_url: str = "https://api.edamam.com/api",
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
        self._app_id = app_id
        self._app_key = app_key

    async def _fetch(self, query: Query) -> Candidate | None:
        data = await self._request_json(
            "GET",
            self.NUTRITION_ENDPOINT,
            params={"app_id": self._app_id, "app_key": self._app_key, "ingr": query.value},
        )
        if data is None:
            return None

        total_weight = coerce_number(data.get("totalWeight")) or 0.0
        if total_weight <= 0:
            # Edamam answers 200 with zero weight when it did not parse the text.
            return None

        totals = data.get("totalNutrients")
        if not isinstance(totals, dict):
            totals = {}
        nutrients: dict[NutrientField, float | None] = {
            NutrientField.CALORIES: coerce_number(data.get("calories")),
        }
        for field, code in EDAMAM_NUTRIENT_CODES.items():
            nutrients[field] = self._quantity(totals.get(code))

        return make_candidate(
            self.source_id,
            query.value,
            nutrients,
            serving_grams=total_weight,
        )

    @staticmethod
    def _quantity(entry: Any) -> float | None:
        if not isinstance(entry, dict):
            return None
        return coerce_number(entry.get("quantity"))
