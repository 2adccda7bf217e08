"""Barcode Lookup provider (barcodes only).

A generic product catalogue: reliable for titles, brands and categories,
not for nutrition, so only the identity is taken.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from nutrition_resolver.providers.base import HTTPProvider, clean_text, make_candidate
from nutrition_resolver.schemas.product import QueryKind


if TYPE_CHECKING:
    import httpx

    from nutrition_resolver.schemas.product import Candidate, Query


class BarcodeLookupProvider(HTTPProvider):
    """Provider for the barcodelookup.com v3 API."""

    source_id = "barcode_lookup"
    supported_kinds = frozenset({QueryKind.BARCODE})
    PRODUCTS_ENDPOINT: Final[str] = "/products"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.barcodelookup.com/v3",
        *,
        timeout: float = 3.0,
        requests_per_minute: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            requests_per_minute=requests_per_minute,
            http_client=http_client,
        )
        self._api_key = api_key

    async def _fetch(self, query: Query) -> Candidate | None:
        data = await self._request_json(
            "GET",
            self.PRODUCTS_ENDPOINT,
            params={"barcode": query.value, "formatted": "y", "key": self._api_key},
        )
        products = (data or {}).get("products") or []
        if not isinstance(products, list) or not products or not isinstance(products[0], dict):
            return None

        product = products[0]
        title = clean_text(product.get("title")) or clean_text(product.get("product_name"))
        if title is None:
            return None
        return make_candidate(
            self.source_id,
            title,
            {},
            brand=clean_text(product.get("brand")) or clean_text(product.get("manufacturer")),
            category=clean_text(product.get("category")),
            barcode=clean_text(product.get("barcode_number")),
        )
