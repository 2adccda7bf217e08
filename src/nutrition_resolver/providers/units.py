"""Unit normalization for provider payloads.

Weight units go through pint. Liquids are converted at 1 g/ml, which is the
fixed factor used for packaged drinks where no density is known.
"""

from __future__ import annotations

import re
from typing import Final

import pint


_ureg: pint.UnitRegistry = pint.UnitRegistry()

KJ_PER_KCAL: Final[float] = 4.184
LIQUID_DENSITY_G_PER_ML: Final[float] = 1.0
REFERENCE_PORTION_G: Final[float] = 100.0

# Provider spellings mapped to pint unit names.
_WEIGHT_UNITS: Final[dict[str, str]] = {
    "g": "gram",
    "gr": "gram",
    "gram": "gram",
    "grams": "gram",
    "grm": "gram",
    "kg": "kilogram",
    "mg": "milligram",
    "oz": "ounce",
    "ounce": "ounce",
    "ounces": "ounce",
    "lb": "pound",
    "lbs": "pound",
    "pound": "pound",
    "pounds": "pound",
}

_VOLUME_UNITS: Final[dict[str, str]] = {
    "ml": "milliliter",
    "mlt": "milliliter",
    "cl": "centiliter",
    "l": "liter",
    "ltr": "liter",
    "liter": "liter",
    "litre": "liter",
    "fl oz": "fluid_ounce",
    "floz": "fluid_ounce",
}

_QUANTITY = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*(fl\.?\s?oz|[a-zA-Z]+)",
)


def kj_to_kcal(kilojoules: float) -> float:
    """Convert kilojoules to kilocalories."""
    return kilojoules / KJ_PER_KCAL


def to_grams(amount: float, unit: str) -> float | None:
    """Convert an amount in a weight or volume unit to grams.

    Returns None for units that cannot be expressed as a mass (pieces,
    cups of unknown density and so on).
    """
    key = unit.strip().lower().replace(".", "")
    if key in _WEIGHT_UNITS:
        quantity = _ureg.Quantity(amount, _WEIGHT_UNITS[key])
        return float(quantity.to(_ureg.gram).magnitude)
    if key in _VOLUME_UNITS:
        quantity = _ureg.Quantity(amount, _VOLUME_UNITS[key])
        return float(quantity.to(_ureg.milliliter).magnitude) * LIQUID_DENSITY_G_PER_ML
    return None


def parse_serving_size(text: str | None) -> float | None:
    """Read the first convertible quantity from a serving-size label.

    Examples: ``"30 g"`` -> 30, ``"1 oz (28 g)"`` -> 28.35, ``"1.5 L"`` -> 1500.
    Quantities whose unit cannot be converted are skipped.
    """
    if not text:
        return None
    for match in _QUANTITY.finditer(text):
        amount = float(match.group(1).replace(",", "."))
        grams = to_grams(amount, match.group(2))
        if grams is not None and grams > 0:
            return grams
    return None


def scale_from_100g(value_per_100g: float, serving_grams: float) -> float:
    """Scale a per-100 g value to one serving."""
    return value_per_100g * serving_grams / REFERENCE_PORTION_G
