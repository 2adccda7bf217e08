"""Base class for LLM prompts.

Keeps the prompt text, the expected output schema and the generation
options together so callers never hardcode them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel


class BasePrompt[T: BaseModel](ABC):
    """Base class for all LLM prompts.

    Example:
        ```python
        class ServingPrompt(BasePrompt[ServingEstimate]):
            output_schema = ServingEstimate
            system_prompt = "You estimate serving sizes."

            def format(self, product_name: str) -> str:
                return f"Typical serving of {product_name}?"
        ```
    """

    output_schema: ClassVar[type[BaseModel]]
    """Pydantic model the JSON answer is validated against."""

    system_prompt: ClassVar[str | None] = None
    """Optional system prompt to set context for the LLM."""

    temperature: ClassVar[float] = 0.1
    """Temperature for generation (low = more deterministic)."""

    max_tokens: ClassVar[int | None] = None
    """Maximum tokens to generate (None = model default)."""

    @abstractmethod
    def format(self, **kwargs: Any) -> str:
        """Format the prompt template with input variables."""
        ...

    @property
    def name(self) -> str:
        """Prompt identifier for logging."""
        return self.__class__.__name__

    def get_options(self) -> dict[str, Any]:
        """Model options for this prompt.

        ``num_predict`` is Ollama's name for the token limit; the OpenRouter
        client maps it to ``max_tokens``.
        """
        options: dict[str, Any] = {"temperature": self.temperature}
        if self.max_tokens is not None:
            options["num_predict"] = self.max_tokens
        return options
