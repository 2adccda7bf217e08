"""Request/response models for completion endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class OllamaGenerateRequest(BaseModel):
    """Request body for Ollama ``/api/generate``."""

    model: str = Field(..., description="Model name (e.g., 'mistral:7b')")
    prompt: str = Field(..., description="Input prompt text")
    stream: bool = Field(default=False, description="Whether to stream response")
    options: dict[str, Any] | None = Field(
        default=None,
        description="Model-specific options (temperature, num_predict, ...)",
    )
    system: str | None = Field(default=None, description="System prompt")


class OllamaGenerateResponse(BaseModel):
    """Response from Ollama ``/api/generate``."""

    model: str = Field(..., description="Model that generated response")
    response: str = Field(..., description="Generated text response")
    done: bool = Field(default=True, description="Whether generation is complete")
    prompt_eval_count: int | None = Field(default=None, description="Prompt tokens")
    eval_count: int | None = Field(default=None, description="Generated tokens")


class ChatMessage(BaseModel):
    """Single message in OpenAI-compatible chat format."""

    role: str = Field(..., description="Message role: system, user, or assistant")
    content: str | None = Field(default=None, description="Message content")


class ChatCompletionRequest(BaseModel):
    """Request body for an OpenAI-compatible ``/chat/completions`` endpoint."""

    model: str = Field(..., description="Model identifier (e.g., 'openai/gpt-3.5-turbo')")
    messages: list[ChatMessage] = Field(..., description="Chat messages")
    temperature: float = Field(default=0.1, description="Sampling temperature")
    max_tokens: int | None = Field(default=None, description="Maximum tokens to generate")
    stream: bool = Field(default=False)


class ChatUsage(BaseModel):
    """Token usage block."""

    prompt_tokens: int = Field(default=0)
    completion_tokens: int = Field(default=0)
    total_tokens: int = Field(default=0)


class ChatChoice(BaseModel):
    """One generated choice."""

    index: int = Field(default=0)
    message: ChatMessage
    finish_reason: str | None = Field(default=None)


class ChatCompletionResponse(BaseModel):
    """Response from an OpenAI-compatible ``/chat/completions`` endpoint."""

    id: str | None = Field(default=None)
    model: str = Field(..., description="Model that generated response")
    choices: list[ChatChoice] = Field(..., description="Generated completions")
    usage: ChatUsage | None = Field(default=None)


class LLMCompletionResult(BaseModel):
    """Provider-independent completion result."""

    raw_response: str = Field(..., description="Raw text response from the model")
    model: str = Field(..., description="Model that generated response")
    prompt_tokens: int | None = Field(default=None, description="Input token count")
    completion_tokens: int | None = Field(default=None, description="Output token count")

    model_config = {"frozen": True}
