"""Shared test fixtures and configuration."""

import os

from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
import pytest

from marian_search.config import Settings
from marian_search.observability import tracing


# Complete test environment so a developer's MARIAN_* variables never leak in
TEST_ENV = {
    "MARIAN_TITLE_WEIGHT": "10",
    "MARIAN_HEADINGS_WEIGHT": "3",
    "MARIAN_TEXT_WEIGHT": "1",
    "MARIAN_MAX_QUERY_TERMS": "10",
    "MARIAN_SPELLING_SCORE_THRESHOLD": "0.6",
    "MARIAN_ANALYZER": "default",
    "MARIAN_LOG_LEVEL": "info",
    "MARIAN_LOG_JSON": "true",
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset MARIAN_* variables before each test and apply test defaults."""
    for key in list(os.environ):
        if key.upper().startswith("MARIAN_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def docs_manifests() -> list[dict]:
    """Two scopes: searchable 'docs' and an 'api' scope excluded from global search."""
    return [
        {
            "searchProperty": "docs",
            "includeInGlobalSearch": True,
            "documents": [
                {
                    "title": "Regex Guide",
                    "headings": ["Patterns", "Options"],
                    "text": "regular expression basics",
                    "url": "https://docs.example.com/regex",
                    "preview": "Match strings with patterns.",
                    "links": ["https://docs.example.com/aggregation"],
                },
                {
                    "title": "Aggregation Pipeline",
                    "headings": ["Stages"],
                    "text": "aggregation stages transform documents with lookup and group",
                    "url": "https://docs.example.com/aggregation",
                    "preview": "Process documents in stages.",
                    "links": ["https://docs.example.com/regex", "https://elsewhere.example.org/"],
                },
            ],
        },
        {
            "searchProperty": "api",
            "includeInGlobalSearch": False,
            "documents": [
                {
                    "title": "Collection Find",
                    "text": "find documents matching a regex filter",
                    "url": "https://api.example.com/find",
                    "preview": "Query a collection.",
                },
            ],
        },
    ]


@pytest.fixture
def span_exporter(monkeypatch) -> InMemorySpanExporter:
    """Route spans from ``create_span`` into memory for the duration of a test."""
    monkeypatch.setitem(tracing._tracer_holder, "tracer", None)
    provider = tracing.init_tracing(service_name="marian-search-test")
    exporter = InMemorySpanExporter()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return exporter
