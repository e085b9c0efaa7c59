"""Prometheus metrics for sync, search and spelling-model builds."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SEARCH_LATENCY = Histogram(
    "marian_search_latency_seconds",
    "Search query latency",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)

SEARCH_REQUESTS = Counter(
    "marian_search_requests_total",
    "Total search requests",
    ["outcome"],
)

SYNC_LATENCY = Histogram(
    "marian_sync_latency_seconds",
    "Time spent building and publishing an index generation",
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

SYNC_REQUESTS = Counter(
    "marian_sync_requests_total",
    "Total sync requests",
    ["outcome"],
)

INDEX_DOC_COUNT = Gauge(
    "marian_index_document_count",
    "Documents in the published index generation",
)

SPELLING_MODEL_BUILDS = Counter(
    "marian_spelling_model_builds_total",
    "Spelling model builds by outcome",
    ["outcome"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        target = histogram.labels(**labels) if labels else histogram
        target.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST
