"""Completion client exceptions.

Raised by the LLM transport and caught by the AI fallback, which turns any
of them into an ``unresolved`` result.
"""

from __future__ import annotations


class LLMError(Exception):
    """Base exception for completion client errors."""


class LLMUnavailableError(LLMError):
    """The completion endpoint cannot be reached.

    Connection errors and exhausted retries. Triggers the secondary client
    in ``FallbackLLMClient``.
    """


class LLMTimeoutError(LLMUnavailableError):
    """The completion request timed out."""


class LLMResponseError(LLMError):
    """The endpoint answered with an HTTP error or an unexpected body."""


class LLMRateLimitError(LLMError):
    """The endpoint rate limited the request (HTTP 429)."""


class LLMConfigurationError(LLMError):
    """The client is misconfigured (missing API key, unknown provider)."""
