"""Candidate validation, scoring, consensus, AI fallback and result caching.

The orchestrator lives in ``nutrition_resolver.resolution.orchestrator`` and
is imported from there; it depends on the providers package, which in turn
depends on the exceptions defined here.
"""

from nutrition_resolver.resolution.cache import CacheEntry, CacheStats, ResultCache
from nutrition_resolver.resolution.consensus import CalorieBucket, ConsensusResolver
from nutrition_resolver.resolution.exceptions import (
    AIFallbackError,
    AIFallbackRefusedError,
    AIFallbackUnparseableError,
    CacheCorruptError,
    CandidateImplausibleError,
    NutritionResolverError,
    ProviderError,
    ProviderMalformedError,
    ProviderUnavailableError,
)
from nutrition_resolver.resolution.fallback import AIEstimate, AIFallbackParser
from nutrition_resolver.resolution.scoring import (
    accuracy_score,
    completeness_fraction,
    identity_quality,
    score_candidate,
    source_trust,
)
from nutrition_resolver.resolution.validator import (
    is_plausible,
    reconstruct_calories,
    validate_candidate,
)


__all__ = [
    "AIEstimate",
    "AIFallbackError",
    "AIFallbackParser",
    "AIFallbackRefusedError",
    "AIFallbackUnparseableError",
    "CacheCorruptError",
    "CacheEntry",
    "CacheStats",
    "CalorieBucket",
    "CandidateImplausibleError",
    "ConsensusResolver",
    "NutritionResolverError",
    "ProviderError",
    "ProviderMalformedError",
    "ProviderUnavailableError",
    "ResultCache",
    "accuracy_score",
    "completeness_fraction",
    "identity_quality",
    "is_plausible",
    "reconstruct_calories",
    "score_candidate",
    "source_trust",
    "validate_candidate",
]
