"""Prometheus metrics.

HTTP request metrics come from prometheus-fastapi-instrumentator. The
resolution engine records its own counters here so provider health and the
origin mix of answers are visible next to the HTTP metrics.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator, metrics

from nutrition_resolver.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import FastAPI

    from nutrition_resolver.core.config import Settings

logger = get_logger(__name__)

METRIC_NAMESPACE: Final[str] = "nutrition_resolver"

PROVIDER_LOOKUPS = Counter(
    "provider_lookups_total",
    "Provider lookups by source and outcome",
    labelnames=("source", "outcome"),
    namespace=METRIC_NAMESPACE,
)

RESOLUTIONS = Counter(
    "resolutions_total",
    "Completed resolutions by origin",
    labelnames=("origin",),
    namespace=METRIC_NAMESPACE,
)

CACHE_LOOKUPS = Counter(
    "cache_lookups_total",
    "Result cache lookups by outcome",
    labelnames=("outcome",),
    namespace=METRIC_NAMESPACE,
)

RESOLUTION_SECONDS = Histogram(
    "resolution_duration_seconds",
    "Wall time of uncached resolutions",
    namespace=METRIC_NAMESPACE,
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 8.0, 16.0, 30.0),
)


def record_provider_outcome(source: str, outcome: str) -> None:
    """Count one provider lookup outcome (candidate, not_found, unavailable...)."""
    PROVIDER_LOOKUPS.labels(source=source, outcome=outcome).inc()


def record_resolution(origin: str, duration: float | None = None) -> None:
    """Count a finished resolution and observe its latency when measured."""
    RESOLUTIONS.labels(origin=origin).inc()
    if duration is not None:
        RESOLUTION_SECONDS.observe(duration)


def record_cache_lookup(*, hit: bool) -> None:
    """Count a cache hit or miss."""
    CACHE_LOOKUPS.labels(outcome="hit" if hit else "miss").inc()


def setup_metrics(app: FastAPI, settings: Settings) -> Instrumentator:
    """Instrument the app and expose ``{prefix}/metrics``.

    Args:
        app: The FastAPI application instance.
        settings: Application settings.

    Returns:
        The configured Instrumentator (unused when metrics are disabled).
    """
    if not settings.observability.metrics.enabled:
        logger.info("Metrics collection disabled")
        return Instrumentator()

    prefix = settings.api.v1_prefix
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=[
            f"{prefix}/health",
            f"{prefix}/ready",
            f"{prefix}/metrics",
        ],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )
    instrumentator.add(
        metrics.default(
            metric_namespace=METRIC_NAMESPACE,
            metric_subsystem="http",
            should_only_respect_2xx_for_highr=False,
        )
    )
    instrumentator.instrument(app)

    endpoint = f"{prefix}/metrics"
    instrumentator.expose(app, endpoint=endpoint, include_in_schema=True, tags=["Monitoring"])
    logger.info("Prometheus metrics configured", endpoint=endpoint)
    return instrumentator


__all__ = [
    "record_cache_lookup",
    "record_provider_outcome",
    "record_resolution",
    "setup_metrics",
]
