"""Unit tests for consensus selection.

Tests cover:
- Agreement buckets and the 15% tolerance
- Consensus vs best-single outcomes
- Independence from arrival order
- Barcode echo tie-break
"""

from __future__ import annotations

import itertools

import pytest

from nutrition_resolver.resolution.consensus import ConsensusResolver
from nutrition_resolver.resolution.scoring import score_candidate
from nutrition_resolver.schemas.product import Query, ResolutionOrigin
from tests.factories.candidates import build_per_100g, build_scored


pytestmark = pytest.mark.unit


@pytest.fixture
def resolver() -> ConsensusResolver:
    return ConsensusResolver()


@pytest.fixture
def agreeing_pair_and_outlier():
    """Two sources near 140 kcal and one reporting 700 kcal."""
    return [
        score_candidate(build_per_100g("open_food_facts", 140.0)),
        score_candidate(build_per_100g("local_dataset", 142.0)),
        score_candidate(build_per_100g("edamam", 700.0)),
    ]


class TestBucketing:
    """Tests for calorie agreement buckets."""

    def test_groups_within_tolerance(self, resolver: ConsensusResolver) -> None:
        """Should group values within 15% of the representative."""
        buckets = resolver.bucket(
            [
                score_candidate(build_per_100g("edamam", 100.0)),
                score_candidate(build_per_100g("local_dataset", 114.0)),
                score_candidate(build_per_100g("open_food_facts", 116.0)),
            ]
        )

        assert [len(b.members) for b in buckets] == [2, 1]
        assert buckets[0].representative == 100.0

    def test_custom_tolerance(self) -> None:
        """Should honor a wider configured tolerance."""
        resolver = ConsensusResolver(tolerance=0.2)

        buckets = resolver.bucket(
            [
                score_candidate(build_per_100g("edamam", 100.0)),
                score_candidate(build_per_100g("open_food_facts", 116.0)),
            ]
        )

        assert len(buckets) == 1


class TestResolve:
    """Tests for ConsensusResolver.resolve."""

    def test_consensus_beats_outlier(
        self, resolver: ConsensusResolver, agreeing_pair_and_outlier
    ) -> None:
        """Should pick the agreeing pair and the most reliable member of it."""
        query = Query.product_name("digestive biscuits")

        result = resolver.resolve(agreeing_pair_and_outlier, query)

        assert result.origin is ResolutionOrigin.CONSENSUS
        assert result.confidence == 0.95
        assert result.candidate is not None
        assert result.candidate.source_id == "local_dataset"
        assert result.candidate.calories == 142.0
        assert result.sources == ("local_dataset", "open_food_facts")
        assert result.query_key == "product_name:digestive biscuits"

    def test_outcome_ignores_arrival_order(
        self, resolver: ConsensusResolver, agreeing_pair_and_outlier
    ) -> None:
        """Should return the same answer for every permutation of the input."""
        results = {
            resolver.resolve(list(order))
            for order in itertools.permutations(agreeing_pair_and_outlier)
        }

        assert len(results) == 1

    def test_best_single_when_nobody_agrees(self, resolver: ConsensusResolver) -> None:
        """Should return the highest combined score, confidence capped at 0.9."""
        candidates = [
            build_scored("usda_fdc"),
            score_candidate(build_per_100g("open_food_facts", 400.0)),
        ]

        result = resolver.resolve(candidates)

        assert result.origin is ResolutionOrigin.BEST_SINGLE
        assert result.candidate is not None
        assert result.candidate.source_id == "usda_fdc"
        assert result.confidence == 0.9
        assert result.sources == ("usda_fdc",)

    def test_best_single_never_averages(self, resolver: ConsensusResolver) -> None:
        """Should return one provider's numbers unchanged."""
        low = score_candidate(build_per_100g("open_food_facts", 100.0))
        high = score_candidate(build_per_100g("edamam", 400.0))

        result = resolver.resolve([low, high])

        assert result.candidate in (low.candidate, high.candidate)

    def test_single_candidate_confidence_is_its_score(self, resolver: ConsensusResolver) -> None:
        """Should use the combined score when it is below the cap."""
        scored = score_candidate(build_per_100g("open_food_facts", 250.0))

        result = resolver.resolve([scored])

        assert result.confidence == pytest.approx(scored.combined_score)
        assert result.confidence < 0.9

    def test_barcode_echo_breaks_ties(self, resolver: ConsensusResolver) -> None:
        """Should prefer the candidate whose barcode matches the query on equal scores."""
        query = Query.barcode("0012345678905")
        plain = score_candidate(build_per_100g("open_food_facts", 100.0))
        echoed = score_candidate(
            build_per_100g("open_food_facts", 400.0, barcode="12345678905")
        )
        assert plain.combined_score == echoed.combined_score

        result = resolver.resolve([plain, echoed], query)

        assert result.candidate == echoed.candidate

    def test_empty_set_is_unresolved(self, resolver: ConsensusResolver) -> None:
        """Should return unresolved when nothing survived validation."""
        result = resolver.resolve([], Query.barcode("5000159407236"))

        assert result.origin is ResolutionOrigin.UNRESOLVED
        assert result.candidate is None
        assert result.confidence == 0.0
        assert result.query_key == "barcode:5000159407236"
