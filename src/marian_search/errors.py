"""Error taxonomy surfaced by the search engine.

Every error carries a stable ``code`` so the transport layer can marshal it
without inspecting the exception type.
"""

from __future__ import annotations


class SearchEngineError(Exception):
    """Base class for all engine errors."""

    code = "search-engine-error"


class StillIndexing(SearchEngineError):
    """Raised when a search arrives before any generation was published."""

    code = "still-indexing"

    def __init__(self) -> None:
        super().__init__("No index generation has been published yet")


class QueryTooLong(SearchEngineError):
    """Raised when a query has more distinct terms than allowed."""

    code = "query-too-long"

    def __init__(self, term_count: int, maximum: int) -> None:
        self.term_count = term_count
        self.maximum = maximum
        super().__init__(f"Query has {term_count} distinct terms; maximum is {maximum}")


class DictionaryLoadFailure(SearchEngineError):
    """Raised by dictionary providers when the word list cannot be loaded."""

    code = "dictionary-load-failure"


class UnknownRequest(SearchEngineError):
    """Raised when a request matches no known shape."""

    code = "unknown-request"

    def __init__(self, keys: list[str]) -> None:
        self.keys = keys
        super().__init__(f"Unknown request with keys: {keys}")


class ManifestError(SearchEngineError):
    """Raised when sync input is malformed."""

    code = "invalid-manifest"


class IndexFrozenError(SearchEngineError):
    """Raised when an index is mutated after it was frozen."""

    code = "index-frozen"
