"""Exceptions for the resolution engine.

None of these reach the caller of ``NutritionResolver.resolve``. They are
raised at the point of failure and recovered at a known boundary: provider
errors inside the adapter, implausible candidates in the orchestrator,
fallback failures as an ``unresolved`` result and cache decode failures as a
cache miss.
"""

from __future__ import annotations


class NutritionResolverError(Exception):
    """Base exception for resolution errors."""


class ProviderError(NutritionResolverError):
    """Base exception for a failed provider call."""

    def __init__(self, message: str, source_id: str) -> None:
        """Initialize the exception.

        Args:
            message: Error message.
            source_id: Provider the failure belongs to.
        """
        self.source_id = source_id
        super().__init__(message)


class ProviderUnavailableError(ProviderError):
    """Network error, timeout or non-2xx status from a provider."""


class ProviderMalformedError(ProviderError):
    """The provider answered but the body could not be understood."""


class CandidateImplausibleError(NutritionResolverError):
    """A candidate failed a plausibility rule."""

    def __init__(self, rule: str, detail: str) -> None:
        """Initialize the exception.

        Args:
            rule: Short identifier of the failed rule.
            detail: Human-readable explanation with the offending values.
        """
        self.rule = rule
        super().__init__(f"{rule}: {detail}")


class AIFallbackError(NutritionResolverError):
    """Base exception for AI fallback failures."""


class AIFallbackRefusedError(AIFallbackError):
    """The model said it does not know the product."""


class AIFallbackUnparseableError(AIFallbackError):
    """No usable calorie or macro value could be extracted."""


class CacheCorruptError(NutritionResolverError):
    """A cached entry could not be decoded."""
