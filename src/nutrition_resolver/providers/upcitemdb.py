"""UPCitemdb provider (barcodes only, identity only).

UPCitemdb knows product titles for many barcodes but carries no nutrition.
Its answer is a name-only candidate: useless for consensus, but enough to
hand a product name to the AI fallback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from nutrition_resolver.providers.base import HTTPProvider, clean_text, make_candidate
from nutrition_resolver.schemas.product import QueryKind


if TYPE_CHECKING:
    from nutrition_resolver.schemas.product import Candidate, Query


class UPCItemDBProvider(HTTPProvider):
    """Provider for the UPCitemdb trial lookup API."""

    source_id = "upcitemdb"
    supported_kinds = frozenset({QueryKind.BARCODE})
    LOOKUP_ENDPOINT: Final[str] = "/lookup"

    async def _fetch(self, query: Query) -> Candidate | None:
        data = await self._request_json("GET", self.LOOKUP_ENDPOINT, params={"upc": query.value})
        items = (data or {}).get("items") or []
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            return None

        item = items[0]
        title = clean_text(item.get("title"))
        if title is None:
            return None
        return make_candidate(
            self.source_id,
            title,
            {},
            brand=clean_text(item.get("brand")),
            category=clean_text(item.get("category")),
            barcode=clean_text(item.get("ean")) or clean_text(item.get("upc")),
        )
