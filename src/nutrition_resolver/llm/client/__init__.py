"""Completion clients used by the AI fallback."""

from nutrition_resolver.llm.client.base import HTTPCompletionClient
from nutrition_resolver.llm.client.fallback import FallbackLLMClient
from nutrition_resolver.llm.client.ollama import OllamaClient
from nutrition_resolver.llm.client.openrouter import OpenRouterClient
from nutrition_resolver.llm.client.protocol import LLMClientProtocol


__all__ = [
    "FallbackLLMClient",
    "HTTPCompletionClient",
    "LLMClientProtocol",
    "OllamaClient",
    "OpenRouterClient",
]
