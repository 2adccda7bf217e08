"""Shared provider machinery.

``BaseProvider`` implements the error-containment boundary: subclasses write
``_fetch`` and are free to raise ``ProviderUnavailableError`` or
``ProviderMalformedError``; ``lookup`` turns every failure into ``None``, logs
it and counts it. ``HTTPProvider`` adds a pooled ``httpx.AsyncClient`` and a
JSON request helper that maps transport failures onto those exceptions.
"""

from __future__ import annotations

import asyncio
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Final

import httpx
import orjson
from aiolimiter import AsyncLimiter

from nutrition_resolver.observability.logging import get_logger
from nutrition_resolver.observability.metrics import record_provider_outcome
from nutrition_resolver.resolution.exceptions import (
    ProviderMalformedError,
    ProviderUnavailableError,
)
from nutrition_resolver.schemas.product import Candidate, NutrientField, QueryKind


if TYPE_CHECKING:
    from collections.abc import Mapping

    from nutrition_resolver.schemas.product import Query


logger = get_logger(__name__)

DEFAULT_TIMEOUT: Final[float] = 4.0


def coerce_number(value: object) -> float | None:
    """Read a provider number that may arrive as int, float or numeric string.

    Non-finite values are treated as missing.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    # "nan" and "inf" parse as floats but are not measurements.
    return number if math.isfinite(number) else None


def clean_text(value: object) -> str | None:
    """Strip a provider string field; empty strings become None."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def make_candidate(
    source_id: str,
    product_name: str,
    nutrients: Mapping[NutrientField, float | None],
    *,
    serving_grams: float = 0.0,
    brand: str | None = None,
    category: str | None = None,
    barcode: str | None = None,
) -> Candidate:
    """Build a candidate, recording which nutrients were actually supplied.

    Missing nutrients (``None``) default to 0 and are left out of
    ``supplied_fields``.
    """
    supplied = tuple(f for f in NutrientField if nutrients.get(f) is not None)
    values = {f.value: float(nutrients.get(f) or 0.0) for f in NutrientField}
    return Candidate(
        product_name=product_name,
        source_id=source_id,
        brand=brand,
        category=category,
        barcode=barcode,
        serving_grams=serving_grams,
        supplied_fields=supplied,
        **values,
    )


class BaseProvider(ABC):
    """Base class for providers with timeout, pacing and error containment.

    Attributes:
        source_id: Provider identity, also the trust table key.
        supported_kinds: Query kinds the provider can answer.
        timeout: Per-call budget in seconds, including rate-limit waits.
    """

    source_id: ClassVar[str]
    supported_kinds: ClassVar[frozenset[QueryKind]] = frozenset(QueryKind)

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        requests_per_minute: float | None = None,
    ) -> None:
        self.timeout = timeout
        # One request per (60/rpm) seconds, no initial burst.
        self._rate_limiter = (
            AsyncLimiter(1, 60.0 / requests_per_minute) if requests_per_minute else None
        )

    async def initialize(self) -> None:
        """Acquire resources. Nothing to do by default."""

    async def shutdown(self) -> None:
        """Release resources. Nothing to do by default."""

    def supports(self, query: Query) -> bool:
        return query.kind in self.supported_kinds

    async def lookup(self, query: Query) -> Candidate | None:
        """Resolve a query, never raising.

        Returns:
            A candidate, or None when the product is unknown to this provider
            or the call failed in any way.
        """
        if not self.supports(query):
            return None

        candidate: Candidate | None = None
        try:
            async with asyncio.timeout(self.timeout):
                if self._rate_limiter is not None:
                    await self._rate_limiter.acquire()
                candidate = await self._fetch(query)
        except TimeoutError:
            outcome = "timeout"
            logger.warning(
                "Provider lookup timed out",
                source=self.source_id,
                query=query.key,
                timeout=self.timeout,
            )
        except ProviderUnavailableError as e:
            outcome = "unavailable"
            logger.warning(
                "Provider unavailable", source=self.source_id, query=query.key, error=str(e)
            )
        except ProviderMalformedError as e:
            outcome = "malformed"
            logger.warning(
                "Provider returned malformed data",
                source=self.source_id,
                query=query.key,
                error=str(e),
            )
        except Exception:
            outcome = "error"
            logger.exception(
                "Unexpected provider failure", source=self.source_id, query=query.key
            )
        else:
            outcome = "candidate" if candidate is not None else "not_found"
            logger.debug("Provider lookup finished", source=self.source_id, outcome=outcome)

        record_provider_outcome(self.source_id, outcome)
        return candidate

    @abstractmethod
    async def _fetch(self, query: Query) -> Candidate | None:
        """Provider-specific lookup; may raise provider exceptions."""
        ...


class HTTPProvider(BaseProvider):
    """Provider backed by an HTTP API.

    The HTTP client may be injected (shared pool, tests); otherwise the
    provider creates one in ``initialize`` and closes it in ``shutdown``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        requests_per_minute: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, requests_per_minute=requests_per_minute)
        self.base_url = base_url.rstrip("/")
        self._http = http_client
        self._owns_http_client = http_client is None

    async def initialize(self) -> None:
        """Create the HTTP client if one was not injected."""
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"User-Agent": "NutritionResolver/0.1"},
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )
            self._owns_http_client = True
        logger.info("Provider initialized", source=self.source_id, base_url=self.base_url)

    async def shutdown(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_http_client and self._http is not None:
            await self._http.aclose()
            self._http = None
        logger.debug("Provider shutdown", source=self.source_id)

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> dict[str, Any] | None:
        """Send a request and decode a JSON object body.

        Returns:
            The decoded object, or None on HTTP 404.

        Raises:
            ProviderUnavailableError: Transport failure or other non-2xx status.
            ProviderMalformedError: Body is not a JSON object.
        """
        if self._http is None:
            await self.initialize()
        assert self._http is not None

        url = f"{self.base_url}{path}"
        try:
            response = await self._http.request(
                method, url, params=params, headers=headers, json=json
            )
        except httpx.TimeoutException as e:
            msg = f"Timeout calling {url}"
            raise ProviderUnavailableError(msg, self.source_id) from e
        except httpx.RequestError as e:
            msg = f"Cannot reach {url}: {e}"
            raise ProviderUnavailableError(msg, self.source_id) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.is_error:
            msg = f"{url} returned {response.status_code}"
            raise ProviderUnavailableError(msg, self.source_id)

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            msg = f"Invalid JSON from {url}: {e}"
            raise ProviderMalformedError(msg, self.source_id) from e

        if not isinstance(data, dict):
            msg = f"Expected a JSON object from {url}, got {type(data).__name__}"
            raise ProviderMalformedError(msg, self.source_id)
        return data
