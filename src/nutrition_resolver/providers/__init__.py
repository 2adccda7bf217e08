"""Nutrition data providers.

Each provider wraps one source behind ``lookup(query) -> Candidate | None``.
"""

from nutrition_resolver.providers.barcode_lookup import BarcodeLookupProvider
from nutrition_resolver.providers.base import BaseProvider, HTTPProvider
from nutrition_resolver.providers.edamam import EdamamProvider
from nutrition_resolver.providers.local_dataset import (
    LocalDataset,
    LocalDatasetProvider,
    LocalProduct,
)
from nutrition_resolver.providers.nutritionix import NutritionixProvider
from nutrition_resolver.providers.open_food_facts import OpenFoodFactsProvider
from nutrition_resolver.providers.protocol import Provider
from nutrition_resolver.providers.registry import build_providers, load_local_dataset
from nutrition_resolver.providers.upcitemdb import UPCItemDBProvider
from nutrition_resolver.providers.usda_fdc import USDAFoodDataCentralProvider


__all__ = [
    "BarcodeLookupProvider",
    "BaseProvider",
    "EdamamProvider",
    "HTTPProvider",
    "LocalDataset",
    "LocalDatasetProvider",
    "LocalProduct",
    "NutritionixProvider",
    "OpenFoodFactsProvider",
    "Provider",
    "UPCItemDBProvider",
    "USDAFoodDataCentralProvider",
    "build_providers",
    "load_local_dataset",
]
