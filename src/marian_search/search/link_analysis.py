"""Link graph construction and HITS-style authority/hub scoring.

The graph is built once per index generation from every document's outgoing
links. URLs that resolve to no indexed document stay in the forward and
inverse maps but never contribute to scores.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
import logging
import math
from types import MappingProxyType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkGraph:
    """Immutable forward/inverse adjacency plus the URL <-> id bijection."""

    forward: Mapping[str, tuple[str, ...]]
    backward: Mapping[str, tuple[str, ...]]
    url_to_id: Mapping[str, int]
    id_to_url: tuple[str, ...]

    @property
    def document_count(self) -> int:
        return len(self.id_to_url)

    def resolved_edges(self) -> list[tuple[int, int]]:
        """Return distinct ``(source_id, target_id)`` edges between indexed documents.

        Self-links and links to URLs outside the corpus are dropped.
        """
        edges: set[tuple[int, int]] = set()
        for source_url, targets in self.forward.items():
            source_id = self.url_to_id[source_url]
            for target_url in targets:
                target_id = self.url_to_id.get(target_url)
                if target_id is None or target_id == source_id:
                    continue
                edges.add((source_id, target_id))
        return sorted(edges)


class LinkGraphBuilder:
    """Accumulates document links while a generation is being built."""

    def __init__(self) -> None:
        self._forward: dict[str, tuple[str, ...]] = {}
        self._backward: dict[str, list[str]] = {}
        self._url_to_id: dict[str, int] = {}
        self._id_to_url: list[str] = []

    def add(self, doc_id: int, url: str, links: Iterable[str]) -> None:
        """Register a document and its outgoing links.

        Ids must arrive densely in order so ``id_to_url`` stays a tuple.
        """
        if doc_id != len(self._id_to_url):
            raise ValueError(f"Expected document id {len(self._id_to_url)}, got {doc_id}")
        if url in self._url_to_id:
            raise ValueError(f"Duplicate document URL: {url}")

        outgoing = tuple(links)
        self._forward[url] = outgoing
        for href in outgoing:
            self._backward.setdefault(href, []).append(url)
        self._url_to_id[url] = doc_id
        self._id_to_url.append(url)

    def build(self) -> LinkGraph:
        return LinkGraph(
            forward=MappingProxyType(dict(self._forward)),
            backward=MappingProxyType({href: tuple(sources) for href, sources in self._backward.items()}),
            url_to_id=MappingProxyType(dict(self._url_to_id)),
            id_to_url=tuple(self._id_to_url),
        )


@dataclass(frozen=True)
class AuthorityHubScores:
    """Per-document authority and hub scores for one generation."""

    authority: tuple[float, ...]
    hub: tuple[float, ...]
    iterations: int = 0
    converged: bool = True

    @classmethod
    def zeros(cls, document_count: int) -> AuthorityHubScores:
        empty = (0.0,) * document_count
        return cls(authority=empty, hub=empty)

    def authority_of(self, doc_id: int) -> float:
        return self.authority[doc_id]

    def hub_of(self, doc_id: int) -> float:
        return self.hub[doc_id]


def _normalize(vector: Sequence[float]) -> list[float]:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0.0:
        return [0.0] * len(vector)
    return [value / norm for value in vector]


def compute_hits(
    graph: LinkGraph,
    *,
    max_iterations: int = 50,
    tolerance: float = 1e-6,
) -> AuthorityHubScores:
    """Run HITS over the indexed part of ``graph``.

    Each round sets authority(d) to the summed hub scores of documents
    linking to d, then hub(d) to the summed authority of documents d links
    to, normalizing both vectors by their Euclidean norm. Iteration stops
    early once neither vector moves by more than ``tolerance``.
    """
    count = graph.document_count
    if count == 0:
        return AuthorityHubScores(authority=(), hub=())

    incoming: list[list[int]] = [[] for _ in range(count)]
    outgoing: list[list[int]] = [[] for _ in range(count)]
    for source, target in graph.resolved_edges():
        incoming[target].append(source)
        outgoing[source].append(target)

    authority = [1.0] * count
    hub = [1.0] * count
    converged = False
    iterations = 0

    for iterations in range(1, max_iterations + 1):  # noqa: B007
        new_authority = _normalize([sum(hub[source] for source in incoming[doc]) for doc in range(count)])
        new_hub = _normalize([sum(new_authority[target] for target in outgoing[doc]) for doc in range(count)])

        delta = max(
            max(abs(new - old) for new, old in zip(new_authority, authority, strict=True)),
            max(abs(new - old) for new, old in zip(new_hub, hub, strict=True)),
        )
        authority, hub = new_authority, new_hub
        if delta < tolerance:
            converged = True
            break

    logger.debug(
        "HITS finished after %d iterations (converged=%s, documents=%d)",
        iterations,
        converged,
        count,
    )
    return AuthorityHubScores(
        authority=tuple(authority),
        hub=tuple(hub),
        iterations=iterations,
        converged=converged,
    )
