"""Provider registration from settings.

Remote providers whose credentials are missing are skipped with a log line
instead of failing at request time.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from nutrition_resolver.observability.logging import get_logger
from nutrition_resolver.providers.barcode_lookup import BarcodeLookupProvider
from nutrition_resolver.providers.edamam import EdamamProvider
from nutrition_resolver.providers.local_dataset import LocalDataset, LocalDatasetProvider
from nutrition_resolver.providers.nutritionix import NutritionixProvider
from nutrition_resolver.providers.open_food_facts import OpenFoodFactsProvider
from nutrition_resolver.providers.upcitemdb import UPCItemDBProvider
from nutrition_resolver.providers.usda_fdc import USDAFoodDataCentralProvider


if TYPE_CHECKING:
    import httpx

    from nutrition_resolver.core.config import Settings
    from nutrition_resolver.providers.protocol import Provider

logger = get_logger(__name__)


def load_local_dataset(settings: Settings) -> LocalDataset | None:
    """Load the bundled dataset named in settings, if any."""
    config = settings.local_dataset
    if not config.enabled or not config.path:
        return None
    path = Path(config.path)
    if not path.is_file():
        logger.warning("Local dataset file not found", path=str(path))
        return None
    return LocalDataset.from_json_file(path)


def build_providers(
    settings: Settings,
    *,
    dataset: LocalDataset | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> list[Provider]:
    """Instantiate every enabled provider that has the credentials it needs.

    Args:
        settings: Application settings.
        dataset: Local table; the local provider is registered when given.
        http_client: Optional shared HTTP client for all remote providers.

    Returns:
        Providers in registration order.
    """
    cfg = settings.providers
    providers: list[Provider] = []

    def _skip(name: str, reason: str) -> None:
        logger.info("Provider not registered", source=name, reason=reason)

    if cfg.usda_fdc.enabled and settings.USDA_FDC_API_KEY:
        providers.append(
            USDAFoodDataCentralProvider(
                settings.USDA_FDC_API_KEY,
                cfg.usda_fdc.base_url,
                timeout=cfg.usda_fdc.timeout,
                requests_per_minute=cfg.usda_fdc.requests_per_minute,
                http_client=http_client,
            )
        )
    else:
        _skip("usda_fdc", "disabled or missing USDA_FDC_API_KEY")

    if cfg.nutritionix.enabled and settings.NUTRITIONIX_APP_ID and settings.NUTRITIONIX_APP_KEY:
        providers.append(
            NutritionixProvider(
                settings.NUTRITIONIX_APP_ID,
                settings.NUTRITIONIX_APP_KEY,
                cfg.nutritionix.base_url,
                timeout=cfg.nutritionix.timeout,
                requests_per_minute=cfg.nutritionix.requests_per_minute,
                http_client=http_client,
            )
        )
    else:
        _skip("nutritionix", "disabled or missing NUTRITIONIX_APP_ID/KEY")

    if cfg.edamam.enabled and settings.EDAMAM_APP_ID and settings.EDAMAM_APP_KEY:
        providers.append(
            EdamamProvider(
                settings.EDAMAM_APP_ID,
                settings.EDAMAM_APP_KEY,
                cfg.edamam.base_url,
                timeout=cfg.edamam.timeout,
                requests_per_minute=cfg.edamam.requests_per_minute,
                http_client=http_client,
            )
        )
    else:
        _skip("edamam", "disabled or missing EDAMAM_APP_ID/KEY")

    if cfg.open_food_facts.enabled:
        providers.append(
            OpenFoodFactsProvider(
                cfg.open_food_facts.base_url,
                timeout=cfg.open_food_facts.timeout,
                requests_per_minute=cfg.open_food_facts.requests_per_minute,
                http_client=http_client,
            )
        )

    if cfg.barcode_lookup.enabled and settings.BARCODE_LOOKUP_API_KEY:
        providers.append(
            BarcodeLookupProvider(
                settings.BARCODE_LOOKUP_API_KEY,
                cfg.barcode_lookup.base_url,
                timeout=cfg.barcode_lookup.timeout,
                requests_per_minute=cfg.barcode_lookup.requests_per_minute,
                http_client=http_client,
            )
        )
    else:
        _skip("barcode_lookup", "disabled or missing BARCODE_LOOKUP_API_KEY")

    if cfg.upcitemdb.enabled:
        providers.append(
            UPCItemDBProvider(
                cfg.upcitemdb.base_url,
                timeout=cfg.upcitemdb.timeout,
                requests_per_minute=cfg.upcitemdb.requests_per_minute,
                http_client=http_client,
            )
        )

    if dataset is not None:
        providers.append(LocalDatasetProvider(dataset))

    logger.info("Providers registered", sources=[p.source_id for p in providers])
    return providers
