"""FastAPI dependencies.

The resolver and settings are created at startup and stored on
``app.state``; handlers reach them through these functions so tests can
override them. Query dependencies normalize the raw path or query string
and reject input that normalizes to nothing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Path, Request
from fastapi import Query as QueryParam

from nutrition_resolver.core.config import Settings, get_settings
from nutrition_resolver.core.exceptions import (
    InvalidQueryException,
    ResolverUnavailableException,
)
from nutrition_resolver.schemas.product import Query


if TYPE_CHECKING:
    from nutrition_resolver.resolution.orchestrator import NutritionResolver


MAX_NAME_LENGTH = 200


async def get_resolver(request: Request) -> NutritionResolver:
    """Get the nutrition resolver from app state.

    Raises:
        ResolverUnavailableException: 503 if the resolver failed to start.
    """
    resolver: NutritionResolver | None = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise ResolverUnavailableException
    return resolver


async def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with, else the cached global settings."""
    settings: Settings | None = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


async def barcode_query(
    barcode: Annotated[str, Path(description="EAN/UPC barcode; separators are ignored")],
) -> Query:
    """Barcode query from the path.

    Raises:
        InvalidQueryException: 400 if the barcode has no digits.
    """
    query = Query.barcode(barcode)
    if not query.value:
        msg = "Barcode must contain digits"
        raise InvalidQueryException("barcode", msg)
    return query


async def name_query(
    name: Annotated[
        str,
        QueryParam(description="Free-text product name", max_length=MAX_NAME_LENGTH),
    ],
) -> Query:
    """Product name query from the query string.

    Raises:
        InvalidQueryException: 400 if nothing is left after normalization.
    """
    query = Query.product_name(name)
    if not query.value:
        msg = "Product name must not be empty"
        raise InvalidQueryException("name", msg)
    return query
