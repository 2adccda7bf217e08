"""HTTP response models for resolution and cache endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field

from nutrition_resolver.schemas.base import APIResponse


if TYPE_CHECKING:
    from nutrition_resolver.resolution.cache import CacheStats
    from nutrition_resolver.schemas.product import Candidate, ResolutionResult


class NutritionFacts(APIResponse):
    """Per-serving nutrition of the chosen candidate."""

    serving_grams: float = Field(..., description="Serving size in grams (0 = unknown)")
    calories: float = Field(..., description="Energy in kcal per serving")
    protein_g: float
    carbs_g: float
    fat_g: float
    fiber_g: float
    sugar_g: float


class ProductResponse(APIResponse):
    """Identity and nutrition of a resolved product."""

    product_name: str
    brand: str | None = None
    category: str | None = None
    barcode: str | None = None
    source: str = Field(..., description="Provider that supplied the chosen answer")
    nutrition: NutritionFacts

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> ProductResponse:
        return cls(
            product_name=candidate.product_name,
            brand=candidate.brand,
            category=candidate.category,
            barcode=candidate.barcode,
            source=candidate.source_id,
            nutrition=NutritionFacts(
                serving_grams=candidate.serving_grams,
                calories=candidate.calories,
                protein_g=candidate.protein_g,
                carbs_g=candidate.carbs_g,
                fat_g=candidate.fat_g,
                fiber_g=candidate.fiber_g,
                sugar_g=candidate.sugar_g,
            ),
        )


class ResolutionResponse(APIResponse):
    """Outcome of a resolve call.

    ``origin == "unresolved"`` means the client should ask for manual entry.
    """

    query: str = Field(..., description="Normalized query key")
    origin: str = Field(..., examples=["consensus", "best-single", "ai-fallback", "unresolved"])
    confidence: float = Field(..., ge=0, le=1)
    text_extracted: bool = Field(
        default=False,
        description="AI answer recovered from free text; treat as low confidence",
    )
    sources: list[str] = Field(default_factory=list)
    product: ProductResponse | None = None

    @classmethod
    def from_result(cls, result: ResolutionResult) -> ResolutionResponse:
        return cls(
            query=result.query_key,
            origin=result.origin.value,
            confidence=round(result.confidence, 4),
            text_extracted=result.text_extracted,
            sources=list(result.sources),
            product=(
                ProductResponse.from_candidate(result.candidate)
                if result.candidate is not None
                else None
            ),
        )


class CacheStatsResponse(APIResponse):
    """Result cache statistics."""

    entry_count: int
    per_source_hit_counts: dict[str, int]
    cache_hits: int
    cache_misses: int

    @classmethod
    def from_stats(cls, stats: CacheStats) -> CacheStatsResponse:
        return cls(
            entry_count=stats.entry_count,
            per_source_hit_counts=dict(stats.per_source_hit_counts),
            cache_hits=stats.cache_hits,
            cache_misses=stats.cache_misses,
        )


class InvalidationResponse(APIResponse):
    """Result of a cache invalidation."""

    removed: int = Field(..., description="Number of cache entries removed")
