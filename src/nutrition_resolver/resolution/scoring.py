"""Reliability and accuracy scoring for validated candidates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nutrition_resolver.resolution.constants import (
    ACCURACY_DENSITY_WEIGHT,
    ACCURACY_FIELDS_WEIGHT,
    ACCURACY_MACRO_WEIGHT,
    COMBINED_ACCURACY_WEIGHT,
    COMBINED_COMPLETENESS_WEIGHT,
    COMBINED_QUALITY_WEIGHT,
    COMBINED_TRUST_WEIGHT,
    MACRO_RATIO_TOLERANCE,
    MIN_MEANINGFUL_NAME_LENGTH,
    PLACEHOLDER_NAMES,
    REALISTIC_MAX_DENSITY,
    REALISTIC_MIN_DENSITY,
    SOURCE_TRUST,
    TRACKED_FIELD_COUNT,
    TRUST_UNKNOWN,
)
from nutrition_resolver.schemas.product import NUTRIENT_FIELDS, NutrientField, ScoredCandidate


if TYPE_CHECKING:
    from nutrition_resolver.schemas.product import Candidate


def source_trust(source_id: str) -> float:
    """Static trust weight of a provider; unknown sources get 0.1."""
    return SOURCE_TRUST.get(source_id, TRUST_UNKNOWN)


def has_meaningful_name(candidate: Candidate) -> bool:
    name = candidate.product_name.strip().lower()
    return len(name) >= MIN_MEANINGFUL_NAME_LENGTH and name not in PLACEHOLDER_NAMES


def completeness_fraction(candidate: Candidate) -> float:
    """Share of the six numeric fields the provider actually supplied."""
    return len(set(candidate.supplied_fields)) / len(NUTRIENT_FIELDS)


def identity_quality(candidate: Candidate) -> float:
    """0.5 for a meaningful product name plus 0.5 for a brand."""
    score = 0.5 if has_meaningful_name(candidate) else 0.0
    if candidate.brand:
        score += 0.5
    return score


def accuracy_score(candidate: Candidate) -> float:
    """How physically believable and complete a candidate looks, in [0, 1].

    - 0.3 when calorie density is within the realistic 50-800 kcal/100 g band
    - 0.3 when macro calories are within 30% of the stated calories
    - up to 0.4 for the share of the 8 tracked fields that are filled in
    """
    score = 0.0

    density = candidate.calorie_density
    if (
        candidate.calories > 0
        and density is not None
        and REALISTIC_MIN_DENSITY <= density <= REALISTIC_MAX_DENSITY
    ):
        score += ACCURACY_DENSITY_WEIGHT

    # Calories derived from the macros agree with them by construction.
    macro_calories = candidate.macro_calories
    calories_stated = NutrientField.CALORIES in candidate.supplied_fields
    if calories_stated and candidate.calories > 0 and macro_calories > 0:
        if abs(macro_calories / candidate.calories - 1.0) <= MACRO_RATIO_TOLERANCE:
            score += ACCURACY_MACRO_WEIGHT

    filled = sum(1 for nutrient in NUTRIENT_FIELDS if candidate.value_of(nutrient) != 0)
    filled += int(has_meaningful_name(candidate))
    filled += int(bool(candidate.brand))
    score += ACCURACY_FIELDS_WEIGHT * filled / TRACKED_FIELD_COUNT

    return min(score, 1.0)


def score_candidate(candidate: Candidate) -> ScoredCandidate:
    """Attach trust, accuracy and the combined score to a candidate."""
    trust = source_trust(candidate.source_id)
    accuracy = accuracy_score(candidate)
    combined = (
        COMBINED_TRUST_WEIGHT * trust
        + COMBINED_ACCURACY_WEIGHT * accuracy
        + COMBINED_COMPLETENESS_WEIGHT * completeness_fraction(candidate)
        + COMBINED_QUALITY_WEIGHT * identity_quality(candidate)
    )
    return ScoredCandidate(
        candidate=candidate,
        accuracy_score=accuracy,
        reliability_score=trust,
        combined_score=combined,
    )
