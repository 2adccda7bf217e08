"""Plausibility checks for provider candidates.

Rules are applied in order and the first failure disqualifies the candidate.
Implausible values are rejected, never clamped or corrected.
"""

from __future__ import annotations

import dataclasses
import math
from typing import TYPE_CHECKING

from nutrition_resolver.resolution.constants import (
    KCAL_PER_G_CARBS,
    KCAL_PER_G_FAT,
    KCAL_PER_G_PROTEIN,
    MAX_CALORIE_DENSITY,
    MAX_MACRO_RATIO,
    MIN_CALORIE_DENSITY,
    MIN_MACRO_RATIO,
)
from nutrition_resolver.resolution.exceptions import CandidateImplausibleError
from nutrition_resolver.schemas.product import NUTRIENT_FIELDS


if TYPE_CHECKING:
    from nutrition_resolver.schemas.product import Candidate


def validate_candidate(candidate: Candidate) -> None:
    """Check a candidate against every plausibility rule.

    Raises:
        CandidateImplausibleError: On the first rule the candidate fails.
    """
    values = [(n.value, candidate.value_of(n)) for n in NUTRIENT_FIELDS]
    values.append(("serving_grams", candidate.serving_grams))
    for name, value in values:
        if not math.isfinite(value):
            raise CandidateImplausibleError("non_finite_value", f"{name}={value}")
        if value < 0:
            raise CandidateImplausibleError("negative_value", f"{name}={value}")

    density = candidate.calorie_density
    if candidate.calories > 0 and density is not None:
        if not MIN_CALORIE_DENSITY <= density <= MAX_CALORIE_DENSITY:
            raise CandidateImplausibleError(
                "calorie_density", f"{density:.1f} kcal/100g outside [1, 1000]"
            )

    if (
        candidate.calories > 0
        and candidate.protein_g > 0
        and candidate.carbs_g > 0
        and candidate.fat_g > 0
    ):
        ratio = candidate.macro_calories / candidate.calories
        if not MIN_MACRO_RATIO <= ratio <= MAX_MACRO_RATIO:
            raise CandidateImplausibleError(
                "macro_ratio", f"macro/stated calories ratio {ratio:.2f} outside [0.5, 1.5]"
            )

    if candidate.is_name_only:
        raise CandidateImplausibleError("no_nutrition", "calories and macros are all zero")


def is_plausible(candidate: Candidate) -> bool:
    """Whether the candidate passes every plausibility rule."""
    try:
        validate_candidate(candidate)
    except CandidateImplausibleError:
        return False
    return True


def reconstruct_calories(candidate: Candidate) -> Candidate:
    """Fill in missing calories from the macros (4/4/9 kcal per gram).

    Candidates that already state calories, or have no macros, are returned
    unchanged. The derived value is not marked as supplied.
    """
    if candidate.calories != 0 or not candidate.has_macros:
        return candidate
    calories = (
        KCAL_PER_G_PROTEIN * candidate.protein_g
        + KCAL_PER_G_CARBS * candidate.carbs_g
        + KCAL_PER_G_FAT * candidate.fat_g
    )
    return dataclasses.replace(candidate, calories=round(calories, 2))
