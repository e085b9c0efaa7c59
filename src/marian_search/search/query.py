"""Query parsing and search scope selection."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from marian_search.errors import QueryTooLong
from marian_search.search.analyzers import Analyzer, get_analyzer, normalize_terms


DEFAULT_MAXIMUM_TERMS = 10


@dataclass(frozen=True)
class Query:
    """A parsed query: distinct normalized terms plus their original order.

    ``tokens`` keeps duplicates and order so multi-word correlations can be
    recognised; scoring itself only looks at ``terms``.
    """

    raw: str
    terms: frozenset[str]
    tokens: tuple[str, ...] = field(default=())

    def is_empty(self) -> bool:
        return not self.terms


def parse_query(
    raw: str,
    *,
    analyzer: Analyzer | None = None,
    max_terms: int = DEFAULT_MAXIMUM_TERMS,
) -> Query:
    """Normalize ``raw`` with the indexing analyzer and enforce the term cap.

    Raises:
        QueryTooLong: when more than ``max_terms`` distinct terms remain.
    """
    active = analyzer or get_analyzer(None)
    tokens = tuple(normalize_terms(active, raw.strip()))
    terms = frozenset(tokens)
    if len(terms) > max_terms:
        raise QueryTooLong(len(terms), max_terms)
    return Query(raw=raw, terms=terms, tokens=tokens)


class ScopedDocument(Protocol):
    """Attributes a scope selector needs from a stored document."""

    @property
    def search_property(self) -> str:  # pragma: no cover - Protocol only
        ...

    @property
    def include_in_global_search(self) -> bool:  # pragma: no cover - Protocol only
        ...


class ScopeSelector(Protocol):
    """Decides which documents a search may return."""

    def admits(self, document: ScopedDocument) -> bool:  # pragma: no cover - Protocol only
        ...


@dataclass(frozen=True)
class Scoped:
    """Admit only documents whose scope tag is in ``properties``."""

    properties: frozenset[str]

    def __post_init__(self) -> None:
        if not self.properties:
            raise ValueError("Scoped search requires at least one property; use GlobalOnly instead")

    def admits(self, document: ScopedDocument) -> bool:
        return document.search_property in self.properties


@dataclass(frozen=True)
class GlobalOnly:
    """Admit only documents flagged for unscoped search."""

    def admits(self, document: ScopedDocument) -> bool:
        return document.include_in_global_search is True


def select_scope(search_properties: Iterable[str] | str | None) -> ScopeSelector:
    """Build a selector from requested scopes.

    Accepts a sequence of names or a comma-separated string; blank entries
    are ignored and nothing requested means ``GlobalOnly``.
    """
    if search_properties is None:
        return GlobalOnly()
    if isinstance(search_properties, str):
        search_properties = search_properties.split(",")
    properties = frozenset(name.strip() for name in search_properties if name and name.strip())
    if not properties:
        return GlobalOnly()
    return Scoped(properties)


def document_filter(scope: ScopeSelector, documents: Sequence[ScopedDocument]) -> Callable[[int], bool]:
    """Return a predicate over document ids for ``scope``."""

    def admit(doc_id: int) -> bool:
        return scope.admits(documents[doc_id])

    return admit
