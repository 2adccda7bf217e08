"""Observability components: logging and metrics."""

from nutrition_resolver.observability.logging import (
    bind_context,
    clear_context,
    get_context,
    get_logger,
    log_context,
    logger,
    setup_logging,
    unbind_context,
)
from nutrition_resolver.observability.metrics import (
    record_cache_lookup,
    record_provider_outcome,
    record_resolution,
    setup_metrics,
)


__all__ = [
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "log_context",
    "logger",
    "record_cache_lookup",
    "record_provider_outcome",
    "record_resolution",
    "setup_logging",
    "setup_metrics",
    "unbind_context",
]
