"""Application lifespan event handlers.

Startup builds the resolution engine: the local dataset, the registered
providers, the LLM client for the AI fallback, the result cache and the
``NutritionResolver`` itself, stored on ``app.state.resolver``. Shutdown
releases their HTTP connections.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from nutrition_resolver.core.config import Settings, get_settings
from nutrition_resolver.llm.client.fallback import FallbackLLMClient
from nutrition_resolver.llm.client.ollama import OllamaClient
from nutrition_resolver.llm.client.openrouter import OpenRouterClient
from nutrition_resolver.observability.logging import get_logger, setup_logging
from nutrition_resolver.providers.registry import build_providers, load_local_dataset
from nutrition_resolver.resolution.cache import ResultCache
from nutrition_resolver.resolution.consensus import ConsensusResolver
from nutrition_resolver.resolution.fallback import AIFallbackParser
from nutrition_resolver.resolution.orchestrator import NutritionResolver


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI

    from nutrition_resolver.llm.client.protocol import LLMClientProtocol

logger = get_logger(__name__)


def _make_llm_client(name: str | None, settings: Settings) -> LLMClientProtocol | None:
    """Build one LLM client by provider name, or None if it cannot be configured."""
    if name == "openrouter":
        if not settings.OPENROUTER_API_KEY:
            logger.warning("OpenRouter selected but OPENROUTER_API_KEY is not set")
            return None
        cfg = settings.llm.openrouter
        return OpenRouterClient(
            api_key=settings.OPENROUTER_API_KEY,
            model=cfg.model,
            base_url=cfg.url,
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
            requests_per_minute=cfg.requests_per_minute,
            referer=cfg.referer,
            title=cfg.title,
        )
    if name == "ollama":
        cfg_ollama = settings.llm.ollama
        return OllamaClient(
            base_url=cfg_ollama.url,
            model=cfg_ollama.model,
            timeout=cfg_ollama.timeout,
            max_retries=cfg_ollama.max_retries,
        )
    if name:
        logger.warning("Unknown LLM provider", provider=name)
    return None


def build_llm_client(settings: Settings) -> LLMClientProtocol | None:
    """Primary LLM client wrapped with the configured secondary, if any.

    Returns None when the AI fallback is disabled or no provider can be
    configured.
    """
    if not settings.llm.enabled or not settings.resolution.ai_fallback_enabled:
        logger.info("AI fallback disabled")
        return None

    primary = _make_llm_client(settings.llm.provider, settings)
    secondary: LLMClientProtocol | None = None
    fallback = settings.llm.fallback
    if fallback.enabled and fallback.secondary_provider != settings.llm.provider:
        secondary = _make_llm_client(fallback.secondary_provider, settings)

    if primary is None:
        primary, secondary = secondary, None
    if primary is None:
        logger.warning("No LLM provider configured - AI fallback unavailable")
        return None

    return FallbackLLMClient(
        primary=primary,
        secondary=secondary,
        fallback_enabled=fallback.enabled,
    )


def build_resolver(
    settings: Settings,
    llm_client: LLMClientProtocol | None = None,
) -> NutritionResolver:
    """Assemble the resolution engine from settings."""
    dataset = load_local_dataset(settings)
    providers = build_providers(settings, dataset=dataset)

    ai_fallback = (
        AIFallbackParser(llm_client, timeout=settings.resolution.ai_fallback_timeout)
        if llm_client is not None
        else None
    )
    resolution = settings.resolution
    return NutritionResolver(
        providers,
        ResultCache(
            ttl_seconds=settings.cache.ttl_seconds,
            ai_ttl_seconds=settings.cache.ai_ttl_seconds,
            max_entries=settings.cache.max_entries,
        ),
        ai_fallback=ai_fallback,
        consensus=ConsensusResolver(tolerance=resolution.consensus_tolerance),
        global_deadline=resolution.global_deadline,
        early_exit_min_score=resolution.early_exit_min_score,
        early_exit_min_trust=resolution.early_exit_min_trust,
        barcode_min_length=resolution.barcode_min_length,
        barcode_max_length=resolution.barcode_max_length,
    )


async def _startup(app: FastAPI, settings: Settings) -> None:
    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
        log_file=settings.logging.file,
    )
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.APP_ENV,
        debug=settings.app.debug,
    )

    # LLM is optional: without it the resolver simply has no AI fallback.
    llm_client: LLMClientProtocol | None = None
    try:
        llm_client = build_llm_client(settings)
        if llm_client is not None:
            await llm_client.initialize()
    except Exception:
        logger.exception("Failed to initialize LLM client - AI fallback unavailable")
        llm_client = None
    app.state.llm_client = llm_client

    try:
        resolver = build_resolver(settings, llm_client)
        await resolver.initialize()
    except Exception:
        logger.exception("Failed to initialize NutritionResolver - lookups unavailable")
        app.state.resolver = None
    else:
        app.state.resolver = resolver

    logger.info("Application startup complete")


async def _shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")

    resolver: NutritionResolver | None = getattr(app.state, "resolver", None)
    if resolver is not None:
        await resolver.shutdown()
        app.state.resolver = None

    llm_client: LLMClientProtocol | None = getattr(app.state, "llm_client", None)
    if llm_client is not None:
        await llm_client.shutdown()
        app.state.llm_client = None

    logger.info("Application shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown.

    Uses the settings the app was created with, falling back to
    ``get_settings()``.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    await _startup(app, settings)
    yield
    await _shutdown(app)
