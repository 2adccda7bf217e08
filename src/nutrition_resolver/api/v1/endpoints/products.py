"""Product resolution endpoints.

Provides:
- GET /products/barcode/{barcode} for scanned or typed barcodes
- GET /products/search?name= for free-text product names

Both always answer 200 with a resolution result; ``origin == "unresolved"``
tells the client to fall back to manual entry.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from nutrition_resolver.api.dependencies import barcode_query, get_resolver, name_query
from nutrition_resolver.resolution.orchestrator import NutritionResolver  # noqa: TC001
from nutrition_resolver.schemas.product import Query  # noqa: TC001
from nutrition_resolver.schemas.responses import ResolutionResponse


router = APIRouter(prefix="/products", tags=["Products"])

ResolverDep = Annotated[NutritionResolver, Depends(get_resolver)]


def _invalid_query_example(field: str, message: str) -> dict[str, Any]:
    return {
        "description": "Query is empty after normalization",
        "content": {
            "application/json": {
                "example": {
                    "error": "INVALID_QUERY",
                    "message": message,
                    "details": [
                        {"code": "EMPTY_AFTER_NORMALIZATION", "message": message, "field": field}
                    ],
                }
            }
        },
    }


_RESOLVER_DOWN = {503: {"description": "Resolver not available"}}


@router.get(
    "/barcode/{barcode}",
    response_model=ResolutionResponse,
    summary="Resolve nutrition by barcode",
    description=(
        "Races every barcode-capable provider and returns one answer. "
        "Non-digit characters are ignored; barcodes outside 8 to 14 digits "
        "resolve to 'unresolved' without any provider call."
    ),
    responses={
        400: _invalid_query_example("barcode", "Barcode must contain digits"),
        **_RESOLVER_DOWN,
    },
)
async def resolve_barcode(
    query: Annotated[Query, Depends(barcode_query)],
    resolver: ResolverDep,
) -> ResolutionResponse:
    return ResolutionResponse.from_result(await resolver.resolve(query))


@router.get(
    "/search",
    response_model=ResolutionResponse,
    summary="Resolve nutrition by product name",
    description=(
        "Races every name-capable provider. The name is lower-cased and "
        "stripped of punctuation before lookup and caching."
    ),
    responses={
        400: _invalid_query_example("name", "Product name must not be empty"),
        **_RESOLVER_DOWN,
    },
)
async def resolve_name(
    query: Annotated[Query, Depends(name_query)],
    resolver: ResolverDep,
) -> ResolutionResponse:
    return ResolutionResponse.from_result(await resolver.resolve(query))
