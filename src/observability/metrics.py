"""Prometheus metrics definitions for the manga proxy and smart cacher.

Defines counters, gauges, and histograms for monitoring:
- Proxy request outcomes and cache effectiveness
- Warm-up throughput and traversal progress
- Scheduler state

Usage:
    from src.observability.metrics import PROXY_REQUESTS, PAGES_WARMED

    PROXY_REQUESTS.labels(result="hit").inc()
    PAGES_WARMED.labels(result="warmed").inc()

Metrics are exposed via /metrics endpoint in the proxy server.
"""

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# Custom registry to avoid conflicts with default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

PROXY_REQUESTS = Counter(
    name="manga_proxy_requests_total",
    documentation="Total proxy requests by result",
    labelnames=["result"],  # hit, miss, not_found, denied, status
    registry=REGISTRY,
)

CACHE_OPERATIONS = Counter(
    name="manga_proxy_cache_operations_total",
    documentation="Total edge cache operations",
    labelnames=["operation"],  # hit, miss, set, error
    registry=REGISTRY,
)

CACHE_WRITES = Counter(
    name="manga_proxy_cache_writes_total",
    documentation="Background cache fills by result",
    labelnames=["result"],  # stored, failed
    registry=REGISTRY,
)

PAGES_WARMED = Counter(
    name="manga_cacher_pages_total",
    documentation="Page warm-up attempts by result",
    labelnames=["result"],  # warmed, missing, error
    registry=REGISTRY,
)

TRAVERSAL_ROUNDS = Counter(
    name="manga_cacher_rounds_total",
    documentation="Batch rounds executed by the traversal engine",
    registry=REGISTRY,
)

TRAVERSAL_RUNS = Counter(
    name="manga_cacher_runs_total",
    documentation="Traversal runs by outcome",
    labelnames=["outcome"],  # catalog_unavailable, halted, pass_complete
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

CHECKPOINT_POSITION = Gauge(
    name="manga_cacher_checkpoint_position",
    documentation="Last persisted traversal position",
    labelnames=["level"],  # manga, chapter, page
    registry=REGISTRY,
)

SCHEDULER_JOBS = Gauge(
    name="manga_cacher_scheduler_jobs",
    documentation="Number of scheduled jobs",
    labelnames=["status"],  # scheduled, running
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

PROXY_REQUEST_DURATION = Histogram(
    name="manga_proxy_request_duration_seconds",
    documentation="Proxy request duration in seconds",
    labelnames=["result"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, float("inf")),
    registry=REGISTRY,
)

WARMUP_BATCH_DURATION = Histogram(
    name="manga_cacher_batch_duration_seconds",
    documentation="Duration of one concurrent warm-up batch in seconds",
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text format.

    Returns:
        UTF-8 encoded metrics in Prometheus exposition format.
    """
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics response."""
    return CONTENT_TYPE_LATEST
