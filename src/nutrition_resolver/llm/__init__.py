"""LLM integration module.

Text-completion clients (OpenRouter, Ollama) and the prompt used by the AI
fallback to estimate nutrition for products no structured source knows.
"""

from nutrition_resolver.llm.client import (
    FallbackLLMClient,
    LLMClientProtocol,
    OllamaClient,
    OpenRouterClient,
)
from nutrition_resolver.llm.exceptions import (
    LLMConfigurationError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
    LLMUnavailableError,
)
from nutrition_resolver.llm.models import LLMCompletionResult
from nutrition_resolver.llm.prompts import (
    AINutritionEstimate,
    BasePrompt,
    NutritionEstimatePrompt,
)


__all__ = [
    "AINutritionEstimate",
    "BasePrompt",
    "FallbackLLMClient",
    "LLMClientProtocol",
    "LLMCompletionResult",
    "LLMConfigurationError",
    "LLMError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMTimeoutError",
    "LLMUnavailableError",
    "NutritionEstimatePrompt",
    "OllamaClient",
    "OpenRouterClient",
]
