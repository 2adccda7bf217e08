"""Shared HTTP transport for completion clients.

Both backends POST one JSON body and read one JSON body back. This base owns
the connection pool, the retry loop and the mapping of transport failures
onto ``LLMError`` subclasses; subclasses only build payloads and read
responses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from nutrition_resolver.llm.exceptions import (
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
    LLMUnavailableError,
)
from nutrition_resolver.observability.logging import get_logger


if TYPE_CHECKING:
    from nutrition_resolver.llm.models import LLMCompletionResult


logger = get_logger(__name__)


class HTTPCompletionClient(ABC):
    """Base class for completion clients talking JSON over HTTP.

    Attributes:
        base_url: Service base URL without trailing slash.
        model: Default model identifier.
        timeout: HTTP request timeout in seconds.
        max_retries: Extra attempts after a timeout or connection error.
    """

    label: ClassVar[str]

    def __init__(
        self,
        base_url: str,
        model: str,
        *,
        timeout: float,
        max_retries: int,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def initialize(self) -> None:
        """Create the HTTP client if one was not injected."""
        if self._http_client is not None:
            return
        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        self._owns_http_client = True
        logger.info(f"{self.label} client initialized", base_url=self.base_url, model=self.model)

    async def shutdown(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.debug(f"{self.label} client shutdown")

    async def _before_attempt(self) -> None:
        """Hook run before every HTTP attempt (pacing)."""

    def _headers(self) -> dict[str, str]:
        return {}

    async def _post_json(self, url: str, payload: dict[str, Any]) -> Any:
        """POST ``payload`` and return the decoded JSON body.

        Timeouts and connection errors are retried ``max_retries`` times.
        HTTP errors are not: another attempt would get the same answer.

        Raises:
            LLMTimeoutError: Every attempt timed out.
            LLMUnavailableError: The service could not be reached.
            LLMRateLimitError: HTTP 429.
            LLMResponseError: Any other HTTP error or a non-JSON body.
        """
        if self._http_client is None:
            await self.initialize()
        assert self._http_client is not None

        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            await self._before_attempt()
            try:
                response = await self._http_client.post(url, json=payload, headers=self._headers())
            except httpx.TimeoutException as e:
                logger.warning(
                    f"{self.label} request timeout",
                    attempt=attempt,
                    attempts=attempts,
                    timeout=self.timeout,
                )
                if attempt < attempts:
                    continue
                msg = f"{self.label} timeout after {self.timeout}s"
                raise LLMTimeoutError(msg) from e
            except httpx.RequestError as e:
                logger.warning(
                    f"{self.label} connection error",
                    attempt=attempt,
                    attempts=attempts,
                    error=str(e),
                )
                if attempt < attempts:
                    continue
                msg = f"Cannot connect to {self.label}: {e}"
                raise LLMUnavailableError(msg) from e

            if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
                retry_after = response.headers.get("retry-after", "60")
                msg = f"{self.label} rate limit exceeded, retry after {retry_after}s"
                raise LLMRateLimitError(msg)
            if response.is_error:
                logger.warning(
                    f"{self.label} request failed",
                    status_code=response.status_code,
                    url=url,
                )
                msg = f"{self.label} returned {response.status_code}"
                raise LLMResponseError(msg)
            try:
                return response.json()
            except ValueError as e:
                msg = f"{self.label} returned a non-JSON body: {e}"
                raise LLMResponseError(msg) from e

        # Only reachable with a negative max_retries.
        msg = f"{self.label} request was not attempted"
        raise LLMUnavailableError(msg)

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> LLMCompletionResult:
        """Generate a text completion."""
        ...
