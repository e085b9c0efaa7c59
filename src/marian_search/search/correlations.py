"""Term correlation table for query expansion.

A correlation edge lets a query term also match a related term at a
discount. Edges are static configuration: they are registered once while an
index is built and never reference per-document data.

Example:
    - "regex" also matches "regexp" and the phrase "regular expression" at 0.8
    - "ip" also matches "address" at 0.1, but "address" does not match "ip"
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class CorrelationEdge:
    """A configured relation between two terms.

    ``weight`` is a discount relative to an exact match. When ``directional``
    is set, querying ``source`` reaches ``target`` but not the reverse.
    """

    source: str
    target: str
    weight: float
    directional: bool = False

    def __post_init__(self) -> None:
        if not 0.0 < self.weight <= 1.0:
            raise ValueError(f"Correlation weight must be in (0, 1], got {self.weight}")
        if not self.source or not self.target:
            raise ValueError("Correlated terms must be non-empty")


# Built-in edges tuned for MongoDB documentation queries.
DEFAULT_CORRELATIONS: tuple[CorrelationEdge, ...] = (
    CorrelationEdge("regexp", "regex", 0.8),
    CorrelationEdge("regular expression", "regex", 0.8),
    CorrelationEdge("ip", "address", 0.1, directional=True),
    CorrelationEdge("join", "lookup", 0.6),
    CorrelationEdge("join", "sql", 0.25),
    CorrelationEdge("aggregation", "sql", 0.1),
    CorrelationEdge("least", "min", 0.6),
)


class CorrelationTable:
    """Queryable set of term-to-term relevance weights.

    Terms are expected to be normalized already; multi-word phrases are
    stored with their words joined by a single space.
    """

    def __init__(self, edges: Iterable[CorrelationEdge] = ()) -> None:
        self._related: dict[str, dict[str, float]] = {}
        self._edges: list[CorrelationEdge] = []
        for edge in edges:
            self.add(edge)

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[CorrelationEdge]:
        return iter(self._edges)

    def add(self, edge: CorrelationEdge) -> None:
        self._edges.append(edge)
        self._link(edge.source, edge.target, edge.weight)
        if not edge.directional:
            self._link(edge.target, edge.source, edge.weight)

    def correlate(self, term_a: str, term_b: str, weight: float, directional: bool = False) -> CorrelationEdge:
        """Register an edge and return it."""
        edge = CorrelationEdge(term_a, term_b, weight, directional)
        self.add(edge)
        return edge

    def related(self, term: str) -> list[tuple[str, float]]:
        """Return ``(term, weight)`` pairs reachable from ``term`` in one hop.

        The term itself is never included; pairs are sorted by term so
        scoring iterates deterministically.
        """
        targets = self._related.get(term)
        if not targets:
            return []
        return sorted(targets.items())

    def phrases(self) -> set[str]:
        """Return every multi-word source term."""
        return {source for source in self._related if " " in source}

    def _link(self, source: str, target: str, weight: float) -> None:
        if source == target:
            return
        targets = self._related.setdefault(source, {})
        # Parallel edges keep the strongest weight
        if weight > targets.get(target, 0.0):
            targets[target] = weight
