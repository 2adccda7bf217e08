"""Local bundled dataset provider.

The dataset is an in-memory table built once at startup and injected into the
provider. Barcode queries match exactly on the digit key. Name queries match
when either name contains the other (aliases included), first record wins.
That containment rule is permissive on purpose and can produce false
positives for short names ("tea" matches "iced tea biscuit").
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import orjson

from nutrition_resolver.observability.logging import get_logger
from nutrition_resolver.providers.base import (
    BaseProvider,
    clean_text,
    coerce_number,
    make_candidate,
)
from nutrition_resolver.providers.units import REFERENCE_PORTION_G, scale_from_100g
from nutrition_resolver.schemas.product import (
    NutrientField,
    QueryKind,
    normalize_barcode,
    normalize_product_name,
)


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from nutrition_resolver.schemas.product import Candidate, Query

logger = get_logger(__name__)

# Record keys holding per-100 g values.
RECORD_NUTRIENT_KEYS: Final[dict[NutrientField, str]] = {
    NutrientField.CALORIES: "calories_per_100g",
    NutrientField.PROTEIN: "protein_per_100g",
    NutrientField.CARBS: "carbs_per_100g",
    NutrientField.FAT: "fat_per_100g",
    NutrientField.FIBER: "fiber_per_100g",
    NutrientField.SUGAR: "sugar_per_100g",
}


@dataclass(frozen=True, slots=True)
class LocalProduct:
    """One row of the local table, values per 100 g."""

    name: str
    barcode: str | None
    brand: str | None
    category: str | None
    serving_grams: float | None
    per_100g: dict[NutrientField, float | None]
    match_names: tuple[str, ...]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> LocalProduct | None:
        """Build a row from a raw record; rows without a name are skipped."""
        name = clean_text(record.get("name"))
        if name is None:
            return None
        aliases = record.get("aliases") or []
        names = [name, *(a for a in aliases if isinstance(a, str))]
        match_names = tuple(n for n in (normalize_product_name(n) for n in names) if n)
        barcode = normalize_barcode(str(record.get("barcode") or "")) or None
        return cls(
            name=name,
            barcode=barcode,
            brand=clean_text(record.get("brand")),
            category=clean_text(record.get("category")),
            serving_grams=coerce_number(record.get("serving_size_grams")),
            per_100g={
                field: coerce_number(record.get(key))
                for field, key in RECORD_NUTRIENT_KEYS.items()
            },
            match_names=match_names,
        )


class LocalDataset:
    """Read-only product table with a barcode index."""

    def __init__(self, products: Iterable[LocalProduct] = ()) -> None:
        self._products: list[LocalProduct] = list(products)
        self._by_barcode: dict[str, LocalProduct] = {}
        for product in self._products:
            if product.barcode:
                self._by_barcode.setdefault(product.barcode, product)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> LocalDataset:
        products = [p for p in (LocalProduct.from_record(r) for r in records) if p]
        return cls(products)

    @classmethod
    def from_json_file(cls, path: str | Path) -> LocalDataset:
        """Load a JSON array of records (or ``{"products": [...]}``)."""
        raw = orjson.loads(Path(path).read_bytes())
        records = raw.get("products", []) if isinstance(raw, dict) else raw
        dataset = cls.from_records(r for r in records if isinstance(r, dict))
        logger.info("Local dataset loaded", path=str(path), products=len(dataset))
        return dataset

    def __len__(self) -> int:
        return len(self._products)

    def find_by_barcode(self, barcode: str) -> LocalProduct | None:
        return self._by_barcode.get(barcode)

    def find_by_name(self, name: str) -> LocalProduct | None:
        """First product whose name or alias contains, or is contained in, ``name``."""
        if not name:
            return None
        for product in self._products:
            for candidate_name in product.match_names:
                if candidate_name in name or name in candidate_name:
                    return product
        return None


class LocalDatasetProvider(BaseProvider):
    """Provider answering from the injected ``LocalDataset``."""

    source_id = "local_dataset"

    def __init__(self, dataset: LocalDataset, *, timeout: float = 1.0) -> None:
        super().__init__(timeout=timeout)
        self._dataset = dataset

    async def _fetch(self, query: Query) -> Candidate | None:
        if query.kind is QueryKind.BARCODE:
            product = self._dataset.find_by_barcode(query.value)
        else:
            product = self._dataset.find_by_name(query.value)
        if product is None:
            return None

        portion = product.serving_grams or REFERENCE_PORTION_G
        nutrients = {
            field: scale_from_100g(value, portion) if value is not None else None
            for field, value in product.per_100g.items()
        }
        return make_candidate(
            self.source_id,
            product.name,
            nutrients,
            serving_grams=portion,
            brand=product.brand,
            category=product.category,
            barcode=product.barcode,
        )
