"""Context propagation for log/trace correlation across async boundaries."""

from __future__ import annotations

from contextvars import ContextVar
from uuid import uuid4


trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Get current trace context with trace_id and span_id."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    """Set trace context for the current task, e.g. a request's generation number."""
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def child_context(**extra: object) -> dict:
    """Return a fresh span within the current trace carrying ``extra`` fields; nothing is set."""
    ctx = trace_context.get() or {}
    trace_id = ctx.get("trace_id") or generate_trace_id()
    return {**ctx, "trace_id": trace_id, "span_id": generate_span_id(), **extra}

