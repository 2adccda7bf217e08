"""Result cache administration endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from nutrition_resolver.api.dependencies import barcode_query, get_resolver, name_query
from nutrition_resolver.resolution.orchestrator import NutritionResolver  # noqa: TC001
from nutrition_resolver.schemas.product import Query  # noqa: TC001
from nutrition_resolver.schemas.responses import CacheStatsResponse, InvalidationResponse


router = APIRouter(prefix="/cache", tags=["Cache"])

ResolverDep = Annotated[NutritionResolver, Depends(get_resolver)]


@router.get("/stats", response_model=CacheStatsResponse, summary="Cache statistics")
async def cache_stats(resolver: ResolverDep) -> CacheStatsResponse:
    return CacheStatsResponse.from_stats(resolver.stats())


@router.delete(
    "/barcode/{barcode}",
    response_model=InvalidationResponse,
    summary="Forget the cached result for a barcode",
)
async def invalidate_barcode(
    query: Annotated[Query, Depends(barcode_query)],
    resolver: ResolverDep,
) -> InvalidationResponse:
    return InvalidationResponse(removed=resolver.invalidate(query))


@router.delete(
    "/search",
    response_model=InvalidationResponse,
    summary="Forget the cached result for a product name",
)
async def invalidate_name(
    query: Annotated[Query, Depends(name_query)],
    resolver: ResolverDep,
) -> InvalidationResponse:
    return InvalidationResponse(removed=resolver.invalidate(query))


@router.delete("", response_model=InvalidationResponse, summary="Clear the result cache")
async def clear_cache(resolver: ResolverDep) -> InvalidationResponse:
    return InvalidationResponse(removed=resolver.clear_all())
