"""Completion client chaining a hosted primary and a local secondary.

Only unavailability moves a request to the secondary. A rate limit or an
HTTP error from the primary is returned as is: the nutrition estimate is a
last resort, and one failed attempt already used up most of its budget.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nutrition_resolver.llm.exceptions import LLMUnavailableError
from nutrition_resolver.observability.logging import get_logger


if TYPE_CHECKING:
    from nutrition_resolver.llm.client.protocol import LLMClientProtocol
    from nutrition_resolver.llm.models import LLMCompletionResult


logger = get_logger(__name__)


class FallbackLLMClient:
    """Completion client that retries on a secondary when the primary is down.

    ``LLMUnavailableError`` (and its ``LLMTimeoutError`` subclass) from the
    primary triggers the secondary; every other error propagates.

    Example:
        ```python
        client = FallbackLLMClient(
            primary=OpenRouterClient(api_key=...),
            secondary=OllamaClient(base_url=..., model=...),
        )
        result = await client.generate(prompt, system=system)
        ```
    """

    def __init__(
        self,
        primary: LLMClientProtocol,
        secondary: LLMClientProtocol | None = None,
        *,
        fallback_enabled: bool = True,
    ) -> None:
        self.primary = primary
        self.secondary = secondary
        self.fallback_enabled = fallback_enabled

    @property
    def _clients(self) -> list[LLMClientProtocol]:
        return [c for c in (self.primary, self.secondary) if c is not None]

    async def initialize(self) -> None:
        for client in self._clients:
            await client.initialize()
        logger.info(
            "Completion clients ready",
            primary=type(self.primary).__name__,
            secondary=type(self.secondary).__name__ if self.secondary else None,
            fallback_enabled=self.fallback_enabled,
        )

    async def shutdown(self) -> None:
        for client in self._clients:
            await client.shutdown()

    async def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> LLMCompletionResult:
        """Generate on the primary, moving to the secondary if it is unreachable.

        ``model`` names a primary model, so the secondary keeps its own
        default.

        Raises:
            LLMUnavailableError: The primary is down and no secondary is
                usable, or the secondary is down too.
            LLMError: Any other failure of the client that was asked.
        """
        try:
            return await self.primary.generate(
                prompt,
                model=model,
                system=system,
                options=options,
            )
        except LLMUnavailableError as e:
            if self.secondary is None or not self.fallback_enabled:
                logger.warning("Primary completion client unavailable", error=str(e))
                raise
            logger.warning(
                "Primary completion client unavailable, using secondary",
                primary=type(self.primary).__name__,
                error=str(e),
            )

        return await self.secondary.generate(prompt, system=system, options=options)
