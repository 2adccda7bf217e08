"""Unit tests for provider registration."""

from __future__ import annotations

from pathlib import Path

import pytest

from nutrition_resolver.core.config import Settings
from nutrition_resolver.core.config.settings import LocalDatasetSettings
from nutrition_resolver.providers.local_dataset import LocalDataset
from nutrition_resolver.providers.registry import build_providers, load_local_dataset


pytestmark = pytest.mark.unit

BUNDLED_DATASET = Path(__file__).resolve().parents[3] / "data" / "local_products.json"

NO_KEYS = {
    "USDA_FDC_API_KEY": "",
    "NUTRITIONIX_APP_ID": "",
    "NUTRITIONIX_APP_KEY": "",
    "EDAMAM_APP_ID": "",
    "EDAMAM_APP_KEY": "",
    "BARCODE_LOOKUP_API_KEY": "",
}


class TestBuildProviders:
    """Tests for build_providers."""

    def test_keyless_providers_only(self) -> None:
        """Should skip every provider that needs credentials."""
        settings = Settings(**NO_KEYS)

        providers = build_providers(settings)

        assert [p.source_id for p in providers] == ["open_food_facts", "upcitemdb"]

    def test_all_providers_with_credentials(self) -> None:
        settings = Settings(
            USDA_FDC_API_KEY="usda",
            NUTRITIONIX_APP_ID="nx-id",
            NUTRITIONIX_APP_KEY="nx-key",
            EDAMAM_APP_ID="ed-id",
            EDAMAM_APP_KEY="ed-key",
            BARCODE_LOOKUP_API_KEY="bl",
        )
        dataset = LocalDataset.from_records([{"name": "Plain Rice"}])

        providers = build_providers(settings, dataset=dataset)

        assert [p.source_id for p in providers] == [
            "usda_fdc",
            "nutritionix",
            "edamam",
            "open_food_facts",
            "barcode_lookup",
            "upcitemdb",
            "local_dataset",
        ]

    def test_disabled_provider_skipped(self) -> None:
        settings = Settings(
            **NO_KEYS,
            providers={"open_food_facts": {"enabled": False}},
        )

        providers = build_providers(settings)

        assert [p.source_id for p in providers] == ["upcitemdb"]

    def test_uses_configured_endpoint(self) -> None:
        settings = Settings(
            **NO_KEYS,
            providers={"open_food_facts": {"base_url": "http://off.test/", "timeout": 1.5}},
        )

        provider = build_providers(settings)[0]

        assert provider.base_url == "http://off.test"
        assert provider.timeout == 1.5


class TestLoadLocalDataset:
    """Tests for load_local_dataset."""

    def test_no_path(self) -> None:
        settings = Settings(local_dataset=LocalDatasetSettings(path=None))

        assert load_local_dataset(settings) is None

    def test_missing_file(self, tmp_path: Path) -> None:
        settings = Settings(
            local_dataset=LocalDatasetSettings(path=str(tmp_path / "missing.json"))
        )

        assert load_local_dataset(settings) is None

    def test_disabled(self) -> None:
        settings = Settings(
            local_dataset=LocalDatasetSettings(enabled=False, path=str(BUNDLED_DATASET))
        )

        assert load_local_dataset(settings) is None

    def test_loads_file(self) -> None:
        settings = Settings(local_dataset=LocalDatasetSettings(path=str(BUNDLED_DATASET)))

        dataset = load_local_dataset(settings)

        assert dataset is not None
        assert dataset.find_by_barcode("5000159407236") is not None
