"""Search data models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Posting:
    """A weighted occurrence of a term in one field of one document.

    ``weight`` is ``frequency × field weight × document weight``.
    """

    doc_id: int
    field: str
    frequency: int
    weight: float
    positions: tuple[int, ...] = ()


@dataclass(frozen=True)
class ScoredDocument:
    """Represents a ranked document produced by the inverted index."""

    doc_id: int
    score: float
    relevance: float
    authority: float = 0.0
    hub: float = 0.0
