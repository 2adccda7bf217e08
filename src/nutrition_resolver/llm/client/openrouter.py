"""Client for OpenRouter.

OpenRouter exposes an OpenAI-compatible chat completions API in front of many
hosted models. Requests are paced with a local rate limiter so bursts of
fallback calls do not trip the account's per-minute quota.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from aiolimiter import AsyncLimiter
from pydantic import ValidationError

from nutrition_resolver.llm.client.base import HTTPCompletionClient
from nutrition_resolver.llm.exceptions import LLMConfigurationError, LLMResponseError
from nutrition_resolver.llm.models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    LLMCompletionResult,
)


if TYPE_CHECKING:
    import httpx


class OpenRouterClient(HTTPCompletionClient):
    """Async client for OpenRouter chat completions.

    Attributes:
        referer: Sent as ``HTTP-Referer`` for OpenRouter's app attribution.
        title: Sent as ``X-Title``.
    """

    label = "OpenRouter"
    DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        model: str = "openai/gpt-3.5-turbo",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 20.0,
        max_retries: int = 1,
        requests_per_minute: float = 20.0,
        referer: str | None = None,
        title: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            msg = "OpenRouter API key is required"
            raise LLMConfigurationError(msg)
        super().__init__(
            base_url,
            model,
            timeout=timeout,
            max_retries=max_retries,
            http_client=http_client,
        )
        self.api_key = api_key
        self.referer = referer
        self.title = title
        # One request per (60/rpm) seconds, no initial burst.
        self._rate_limiter = AsyncLimiter(1, 60.0 / requests_per_minute)

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        if self.title:
            headers["X-Title"] = self.title
        return headers

    async def _before_attempt(self) -> None:
        await self._rate_limiter.acquire()

    async def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> LLMCompletionResult:
        """Generate a chat completion for a single user prompt.

        Args:
            prompt: User message.
            model: Model override.
            system: Optional system message.
            options: ``temperature`` and ``num_predict`` (max tokens) are honored.

        Raises:
            LLMUnavailableError: If OpenRouter cannot be reached.
            LLMTimeoutError: If every attempt times out.
            LLMResponseError: On HTTP errors, an odd body or no choices.
            LLMRateLimitError: On HTTP 429.
        """
        messages = [ChatMessage(role="user", content=prompt)]
        if system:
            messages.insert(0, ChatMessage(role="system", content=system))

        options = options or {}
        request = ChatCompletionRequest(
            model=model or self.model,
            messages=messages,
            temperature=options.get("temperature", 0.1),
            max_tokens=options.get("num_predict"),
        )
        body = await self._post_json(self.chat_url, request.model_dump(exclude_none=True))
        try:
            response = ChatCompletionResponse.model_validate(body)
        except ValidationError as e:
            msg = f"Unexpected OpenRouter response body: {e}"
            raise LLMResponseError(msg) from e

        if not response.choices:
            msg = "OpenRouter returned no choices"
            raise LLMResponseError(msg)

        usage = response.usage
        return LLMCompletionResult(
            raw_response=response.choices[0].message.content or "",
            model=response.model,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
        )
