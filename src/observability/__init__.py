"""Observability for the manga proxy and smart cacher.

Provides:
- Correlation ID context management for request and job tracing
- Structured logging with context propagation
- Prometheus metrics for monitoring and alerting

Usage:
    from src.observability import configure_logging, correlation_id_context

    configure_logging(level="INFO")

    with correlation_id_context("warmup-20261017-030000"):
        ...
"""

from src.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    correlation_id_context,
    new_correlation_id,
)
from src.observability.logging import (
    SERVICE_NAME,
    configure_logging,
)
from src.observability.metrics import (
    PROXY_REQUESTS,
    CACHE_OPERATIONS,
    CACHE_WRITES,
    PAGES_WARMED,
    TRAVERSAL_ROUNDS,
    TRAVERSAL_RUNS,
    CHECKPOINT_POSITION,
    SCHEDULER_JOBS,
    PROXY_REQUEST_DURATION,
    WARMUP_BATCH_DURATION,
    get_metrics_text,
    get_metrics_content_type,
)

__all__ = [
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    "new_correlation_id",
    "SERVICE_NAME",
    "configure_logging",
    "PROXY_REQUESTS",
    "CACHE_OPERATIONS",
    "CACHE_WRITES",
    "PAGES_WARMED",
    "TRAVERSAL_ROUNDS",
    "TRAVERSAL_RUNS",
    "CHECKPOINT_POSITION",
    "SCHEDULER_JOBS",
    "PROXY_REQUEST_DURATION",
    "WARMUP_BATCH_DURATION",
    "get_metrics_text",
    "get_metrics_content_type",
]
