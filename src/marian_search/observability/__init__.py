"""Observability module for tracing, metrics, and structured logging."""

from marian_search.observability.context import child_context, get_trace_context, set_trace_context
from marian_search.observability.logging import JsonFormatter, configure_logging
from marian_search.observability.metrics import (
    INDEX_DOC_COUNT,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    SPELLING_MODEL_BUILDS,
    SYNC_LATENCY,
    SYNC_REQUESTS,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from marian_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_DOC_COUNT",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "SPELLING_MODEL_BUILDS",
    "SYNC_LATENCY",
    "SYNC_REQUESTS",
    "JsonFormatter",
    "child_context",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "track_latency",
]
