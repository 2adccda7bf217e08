"""Constants for candidate validation, scoring and consensus.

Contains:
- Plausibility bands used by the validator
- Source trust table and score weights used by the scorer
- Consensus and confidence parameters
"""

from __future__ import annotations

from typing import Final


# =============================================================================
# Validator
# =============================================================================
# Admission band for calorie density: diet drinks through pure oils.
MIN_CALORIE_DENSITY: Final[float] = 1.0
MAX_CALORIE_DENSITY: Final[float] = 1000.0

# Allowed macro-calories / stated-calories ratio (fiber, alcohol, rounding).
MIN_MACRO_RATIO: Final[float] = 0.5
MAX_MACRO_RATIO: Final[float] = 1.5

# Atwater factors, kcal per gram.
KCAL_PER_G_PROTEIN: Final[float] = 4.0
KCAL_PER_G_CARBS: Final[float] = 4.0
KCAL_PER_G_FAT: Final[float] = 9.0


# =============================================================================
# Reliability scorer
# =============================================================================
TRUST_TIER_1: Final[float] = 1.0
TRUST_TIER_2: Final[float] = 0.8
TRUST_COMMUNITY: Final[float] = 0.6
TRUST_PRODUCT_LOOKUP: Final[float] = 0.5
TRUST_NAME_ONLY: Final[float] = 0.3
TRUST_UNKNOWN: Final[float] = 0.1

SOURCE_TRUST: Final[dict[str, float]] = {
    "usda_fdc": TRUST_TIER_1,
    "nutritionix": TRUST_TIER_1,
    "edamam": TRUST_TIER_2,
    "local_dataset": TRUST_TIER_2,
    "open_food_facts": TRUST_COMMUNITY,
    "barcode_lookup": TRUST_PRODUCT_LOOKUP,
    "upcitemdb": TRUST_NAME_ONLY,
}

# "Very plausible" density band, tighter than the validator's.
REALISTIC_MIN_DENSITY: Final[float] = 50.0
REALISTIC_MAX_DENSITY: Final[float] = 800.0
MACRO_RATIO_TOLERANCE: Final[float] = 0.3

ACCURACY_DENSITY_WEIGHT: Final[float] = 0.3
ACCURACY_MACRO_WEIGHT: Final[float] = 0.3
ACCURACY_FIELDS_WEIGHT: Final[float] = 0.4
TRACKED_FIELD_COUNT: Final[int] = 8

COMBINED_TRUST_WEIGHT: Final[float] = 0.4
COMBINED_ACCURACY_WEIGHT: Final[float] = 0.3
COMBINED_COMPLETENESS_WEIGHT: Final[float] = 0.2
COMBINED_QUALITY_WEIGHT: Final[float] = 0.1

# Names that identify nothing.
PLACEHOLDER_NAMES: Final[frozenset[str]] = frozenset(
    {"", "unknown", "unknown product", "product", "n/a", "na", "none", "null"}
)
MIN_MEANINGFUL_NAME_LENGTH: Final[int] = 3


# =============================================================================
# Consensus resolver
# =============================================================================
DEFAULT_CONSENSUS_TOLERANCE: Final[float] = 0.15
BUCKET_SIZE_WEIGHT: Final[float] = 0.6
BUCKET_ACCURACY_WEIGHT: Final[float] = 0.4
MIN_CONSENSUS_SIZE: Final[int] = 2
CONSENSUS_CONFIDENCE: Final[float] = 0.95
MAX_SINGLE_CONFIDENCE: Final[float] = 0.9


# =============================================================================
# AI fallback
# =============================================================================
AI_DEFAULT_CONFIDENCE: Final[float] = 0.6
AI_MAX_CONFIDENCE: Final[float] = 0.7
AI_TEXT_EXTRACTION_CONFIDENCE: Final[float] = 0.4
AI_SOURCE_ID: Final[str] = "ai_fallback"
