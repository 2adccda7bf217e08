"""Consensus selection over validated candidates.

Independent sources that agree on calories are the strongest accuracy signal
available, so agreeing candidates are grouped first. Without agreement the
single most trustworthy candidate wins; disagreeing numbers are never
averaged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from nutrition_resolver.resolution.constants import (
    BUCKET_ACCURACY_WEIGHT,
    BUCKET_SIZE_WEIGHT,
    CONSENSUS_CONFIDENCE,
    DEFAULT_CONSENSUS_TOLERANCE,
    MAX_SINGLE_CONFIDENCE,
    MIN_CONSENSUS_SIZE,
)
from nutrition_resolver.schemas.product import ResolutionOrigin, ResolutionResult


if TYPE_CHECKING:
    from collections.abc import Iterable

    from nutrition_resolver.schemas.product import Query, ScoredCandidate


@dataclass(slots=True)
class CalorieBucket:
    """Candidates whose calories agree with the representative value."""

    representative: float
    members: list[ScoredCandidate] = field(default_factory=list)

    def accepts(self, calories: float, tolerance: float) -> bool:
        if self.representative == 0:
            return calories == 0
        return abs(calories - self.representative) / self.representative <= tolerance

    @property
    def score(self) -> float:
        mean_accuracy = sum(m.accuracy_score for m in self.members) / len(self.members)
        return len(self.members) * BUCKET_SIZE_WEIGHT + mean_accuracy * BUCKET_ACCURACY_WEIGHT


def _arrival_independent_order(scored: ScoredCandidate) -> tuple[str, float, str]:
    candidate = scored.candidate
    return (candidate.source_id, candidate.calories, candidate.product_name)


def _barcode_echo(scored: ScoredCandidate, query: Query | None) -> bool:
    if query is None or not query.is_barcode or not scored.candidate.barcode:
        return False
    return scored.candidate.barcode.lstrip("0") == query.value.lstrip("0")


class ConsensusResolver:
    """Pick one answer from a set of validated, scored candidates.

    The outcome depends only on the set of candidates, not on the order they
    arrived in.
    """

    def __init__(self, tolerance: float = DEFAULT_CONSENSUS_TOLERANCE) -> None:
        self.tolerance = tolerance

    def bucket(self, candidates: Iterable[ScoredCandidate]) -> list[CalorieBucket]:
        """Group candidates by relative calorie agreement."""
        buckets: list[CalorieBucket] = []
        for scored in sorted(candidates, key=_arrival_independent_order):
            calories = scored.candidate.calories
            for existing in buckets:
                if existing.accepts(calories, self.tolerance):
                    existing.members.append(scored)
                    break
            else:
                buckets.append(CalorieBucket(representative=calories, members=[scored]))
        return buckets

    def resolve(
        self,
        candidates: Iterable[ScoredCandidate],
        query: Query | None = None,
    ) -> ResolutionResult:
        """Choose the final candidate.

        Args:
            candidates: Validated, scored candidates.
            query: The original query; supplies the cache key and the barcode
                tie-break signal.

        Returns:
            A ``consensus`` or ``best-single`` result, or ``unresolved`` when
            the set is empty.
        """
        query_key = query.key if query is not None else ""
        buckets = self.bucket(candidates)
        if not buckets:
            return ResolutionResult.unresolved(query_key)

        # max() keeps the first of equal scores, and bucket order is deterministic.
        best_bucket = max(buckets, key=lambda b: b.score)
        if len(best_bucket.members) >= MIN_CONSENSUS_SIZE:
            winner = min(
                best_bucket.members,
                key=lambda s: (-s.combined_score, s.source_id),
            )
            return ResolutionResult(
                query_key=query_key,
                origin=ResolutionOrigin.CONSENSUS,
                confidence=CONSENSUS_CONFIDENCE,
                candidate=winner.candidate,
                sources=tuple(sorted({m.source_id for m in best_bucket.members})),
            )

        everyone = [member for b in buckets for member in b.members]
        winner = min(
            everyone,
            key=lambda s: (-s.combined_score, not _barcode_echo(s, query), s.source_id),
        )
        return ResolutionResult(
            query_key=query_key,
            origin=ResolutionOrigin.BEST_SINGLE,
            confidence=min(winner.combined_score, MAX_SINGLE_CONFIDENCE),
            candidate=winner.candidate,
            sources=(winner.source_id,),
        )
