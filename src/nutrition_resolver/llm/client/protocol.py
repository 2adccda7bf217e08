"""Completion client protocol.

Lets the AI fallback work with any backend and lets ``FallbackLLMClient``
chain two of them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from nutrition_resolver.llm.models import LLMCompletionResult


@runtime_checkable
class LLMClientProtocol(Protocol):
    """Protocol for completion client implementations."""

    async def initialize(self) -> None:
        """Initialize client resources (HTTP connections, etc.)."""
        ...

    async def shutdown(self) -> None:
        """Release client resources."""
        ...

    async def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> LLMCompletionResult:
        """Generate a text completion.

        Raises:
            LLMUnavailableError: Service unreachable (triggers fallback).
            LLMTimeoutError: Request timed out.
            LLMResponseError: HTTP error or unexpected body.
            LLMRateLimitError: Request was rate limited.
        """
        ...
