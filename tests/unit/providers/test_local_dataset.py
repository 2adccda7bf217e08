"""Unit tests for the bundled local dataset provider."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from nutrition_resolver.providers.local_dataset import (
    LocalDataset,
    LocalDatasetProvider,
    LocalProduct,
)
from nutrition_resolver.schemas.product import NutrientField, Query


pytestmark = pytest.mark.unit

BUNDLED_DATASET = Path(__file__).resolve().parents[3] / "data" / "local_products.json"


@pytest.fixture(scope="module")
def bundled() -> LocalDataset:
    return LocalDataset.from_json_file(BUNDLED_DATASET)


class TestLocalProduct:
    """Tests for record parsing."""

    def test_skips_nameless_record(self) -> None:
        assert LocalProduct.from_record({"barcode": "123", "calories_per_100g": 100}) is None

    def test_normalizes_match_names(self) -> None:
        product = LocalProduct.from_record(
            {"name": "Parle-G Biscuits", "aliases": ["PARLE G", 42], "barcode": "890-1063"}
        )

        assert product is not None
        assert product.match_names == ("parle g biscuits", "parle g")
        assert product.barcode == "8901063"
        assert product.per_100g[NutrientField.CALORIES] is None


class TestLocalDataset:
    """Tests for LocalDataset lookups."""

    def test_loads_bundled_file(self, bundled: LocalDataset) -> None:
        assert len(bundled) > 0
        assert bundled.find_by_barcode("5000159407236") is not None

    def test_accepts_plain_array(self, tmp_path: Path) -> None:
        path = tmp_path / "products.json"
        path.write_bytes(orjson.dumps([{"name": "Plain Rice"}, {"brand": "nameless"}, "junk"]))

        dataset = LocalDataset.from_json_file(path)

        assert len(dataset) == 1

    def test_name_matches_either_direction(self) -> None:
        dataset = LocalDataset.from_records([{"name": "Aloo Bhujia", "aliases": ["bhujia"]}])

        assert dataset.find_by_name("haldiram s aloo bhujia") is not None
        assert dataset.find_by_name("bhuj") is not None
        assert dataset.find_by_name("peanut butter") is None
        assert dataset.find_by_name("") is None

    def test_first_record_wins(self) -> None:
        dataset = LocalDataset.from_records(
            [
                {"name": "Iced Tea", "barcode": "11111111"},
                {"name": "Green Tea", "barcode": "22222222"},
            ]
        )

        product = dataset.find_by_name("tea")

        assert product is not None
        assert product.name == "Iced Tea"


class TestLocalDatasetProvider:
    """Tests for LocalDatasetProvider."""

    async def test_barcode_scaled_to_serving(self, bundled: LocalDataset) -> None:
        """Should scale per-100 g values to the record's serving size."""
        provider = LocalDatasetProvider(bundled)

        candidate = await provider.lookup(Query.barcode("5000159407236"))

        assert candidate is not None
        assert candidate.source_id == "local_dataset"
        assert candidate.product_name == "Snickers Bar"
        assert candidate.serving_grams == 50.0
        assert candidate.calories == pytest.approx(244.0)
        assert candidate.fat_g == pytest.approx(11.75)
        assert candidate.brand == "Mars"

    async def test_alias_match(self, bundled: LocalDataset) -> None:
        provider = LocalDatasetProvider(bundled)

        candidate = await provider.lookup(Query.product_name("Coke"))

        assert candidate is not None
        assert candidate.product_name == "Coca-Cola Original Taste"

    async def test_name_only_record(self) -> None:
        """Should return a name-only candidate for a record without nutrients."""
        dataset = LocalDataset.from_records([{"name": "Mystery Snack", "barcode": "12345678"}])
        provider = LocalDatasetProvider(dataset)

        candidate = await provider.lookup(Query.barcode("12345678"))

        assert candidate is not None
        assert candidate.serving_grams == 100.0
        assert candidate.is_name_only

    async def test_unknown_barcode(self, bundled: LocalDataset) -> None:
        provider = LocalDatasetProvider(bundled)

        assert await provider.lookup(Query.barcode("99999999")) is None
