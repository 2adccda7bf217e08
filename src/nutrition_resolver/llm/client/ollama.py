"""Client for a local or self-hosted Ollama instance.

Ollama is the secondary backend: free to run next to the service, slower
and less knowledgeable than hosted models.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from nutrition_resolver.llm.client.base import HTTPCompletionClient
from nutrition_resolver.llm.exceptions import LLMResponseError
from nutrition_resolver.llm.models import (
    LLMCompletionResult,
    OllamaGenerateRequest,
    OllamaGenerateResponse,
)


if TYPE_CHECKING:
    import httpx


class OllamaClient(HTTPCompletionClient):
    """Async client for Ollama's non-streaming ``/api/generate`` endpoint."""

    label = "Ollama"

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        max_retries: int = 1,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            base_url,
            model,
            timeout=timeout,
            max_retries=max_retries,
            http_client=http_client,
        )

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}/api/generate"

    async def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        options: dict[str, Any] | None = None,
    ) -> LLMCompletionResult:
        """Generate a text completion.

        ``options`` are passed through unchanged (temperature, num_predict).

        Raises:
            LLMUnavailableError: If Ollama cannot be reached.
            LLMTimeoutError: If every attempt times out.
            LLMResponseError: If Ollama answers with an error or an odd body.
        """
        request = OllamaGenerateRequest(
            model=model or self.model,
            prompt=prompt,
            options=options,
            system=system,
        )
        body = await self._post_json(self.generate_url, request.model_dump(exclude_none=True))
        try:
            response = OllamaGenerateResponse.model_validate(body)
        except ValidationError as e:
            msg = f"Unexpected Ollama response body: {e}"
            raise LLMResponseError(msg) from e

        return LLMCompletionResult(
            raw_response=response.response,
            model=response.model,
            prompt_tokens=response.prompt_eval_count,
            completion_tokens=response.eval_count,
        )
