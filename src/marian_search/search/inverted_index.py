"""Weighted-field inverted index with correlation expansion and link blending.

An index is filled through ``add``/``correlate_word`` while a generation is
being built, then ``freeze`` attaches the generation's link-analysis scores
and makes it read-only. ``search`` never mutates the index, so a frozen
index can be shared by any number of concurrent readers.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
import logging
from types import MappingProxyType

from marian_search.errors import IndexFrozenError
from marian_search.search.analyzers import Analyzer, get_analyzer, normalize_terms
from marian_search.search.correlations import CorrelationEdge, CorrelationTable
from marian_search.search.link_analysis import AuthorityHubScores
from marian_search.search.models import Posting, ScoredDocument
from marian_search.search.query import Query


logger = logging.getLogger(__name__)

DEFAULT_FIELD_WEIGHTS: Mapping[str, float] = MappingProxyType({"title": 10.0, "headings": 3.0, "text": 1.0})

# (term, relevance factor) pairs contributed by one query term
_ExpansionGroup = list[tuple[str, float]]


class InvertedIndex:
    """Maps normalized terms to weighted postings across documents and fields."""

    def __init__(
        self,
        field_weights: Mapping[str, float] | None = None,
        *,
        analyzer: Analyzer | None = None,
        correlations: Iterable[CorrelationEdge] = (),
        link_authority_weight: float = 1.0,
        link_hub_weight: float = 0.25,
    ) -> None:
        weights = dict(field_weights if field_weights is not None else DEFAULT_FIELD_WEIGHTS)
        for name, value in weights.items():
            if value <= 0:
                raise ValueError(f"Field weight for '{name}' must be positive, got {value}")
        if link_authority_weight < 0 or link_hub_weight < 0:
            raise ValueError("Link blend weights must be non-negative")

        self.field_weights: Mapping[str, float] = MappingProxyType(weights)
        self.analyzer = analyzer or get_analyzer(None)
        self.link_authority_weight = link_authority_weight
        self.link_hub_weight = link_hub_weight

        self._postings: dict[str, list[Posting]] = defaultdict(list)
        self._doc_weights: dict[int, float] = {}
        self._correlations = CorrelationTable()
        self._link_scores: AuthorityHubScores | None = None
        self._frozen = False

        for edge in correlations:
            self.correlate_word(edge.source, edge.target, edge.weight, edge.directional)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def document_count(self) -> int:
        return len(self._doc_weights)

    @property
    def vocabulary(self) -> frozenset[str]:
        return frozenset(self._postings)

    @property
    def correlations(self) -> CorrelationTable:
        return self._correlations

    @property
    def link_scores(self) -> AuthorityHubScores | None:
        return self._link_scores

    def postings(self, term: str) -> tuple[Posting, ...]:
        """Return the postings of a single normalized term."""
        return tuple(self._postings.get(term, ()))

    def add(
        self,
        doc_id: int,
        fields: Mapping[str, str | None],
        *,
        weight: float = 1.0,
        on_word: Callable[[str], None] | None = None,
    ) -> None:
        """Ingest one document's fields.

        ``on_word`` is invoked once per distinct token of the document so the
        caller can collect a vocabulary. Missing or empty fields are skipped.
        """
        self._ensure_mutable()
        if doc_id in self._doc_weights:
            raise ValueError(f"Document {doc_id} was already added")
        if weight <= 0:
            raise ValueError(f"Document weight must be positive, got {weight}")
        unknown = set(fields) - set(self.field_weights)
        if unknown:
            raise ValueError(f"Unknown fields {sorted(unknown)}; expected {sorted(self.field_weights)}")

        self._doc_weights[doc_id] = weight
        seen_words: set[str] = set()

        for field_name, field_weight in self.field_weights.items():
            text = fields.get(field_name)
            if not text:
                continue
            positions: dict[str, list[int]] = defaultdict(list)
            for token in self.analyzer(text):
                positions[token.text].append(token.position)

            for term, term_positions in positions.items():
                frequency = len(term_positions)
                self._postings[term].append(
                    Posting(
                        doc_id=doc_id,
                        field=field_name,
                        frequency=frequency,
                        weight=frequency * field_weight * weight,
                        positions=tuple(term_positions),
                    )
                )
                if term not in seen_words:
                    seen_words.add(term)
                    if on_word is not None:
                        on_word(term)

    def correlate_word(self, term_a: str, term_b: str, weight: float, directional: bool = False) -> None:
        """Register a correlation edge between two (possibly multi-word) terms."""
        self._ensure_mutable()
        source = self._normalize_key(term_a)
        target = self._normalize_key(term_b)
        self._correlations.correlate(source, target, weight, directional)

    def freeze(self, link_scores: AuthorityHubScores | None = None) -> InvertedIndex:
        """Attach link-analysis scores and reject further mutation."""
        self._ensure_mutable()
        if link_scores is not None and self._doc_weights:
            highest = max(self._doc_weights)
            if highest >= len(link_scores.authority):
                raise ValueError(
                    f"Link scores cover {len(link_scores.authority)} documents but index holds id {highest}"
                )
        self._link_scores = link_scores
        self._frozen = True
        logger.debug(
            "Index frozen: %d documents, %d terms, %d correlations",
            self.document_count,
            len(self._postings),
            len(self._correlations),
        )
        return self

    def search(
        self,
        query: Query,
        *,
        admit: Callable[[int], bool] | None = None,
        use_link_analysis: bool = False,
    ) -> list[ScoredDocument]:
        """Rank documents for ``query``.

        A document's relevance is the sum, over query terms and their
        correlated terms, of ``posting weight × relevance factor``. Documents
        rejected by ``admit`` or with zero relevance are left out. With link
        analysis the relevance is scaled by ``1 + a·authority + h·hub``.
        Results are ordered by score descending, then document id ascending.
        """
        if query.is_empty():
            return []

        relevance: dict[int, float] = defaultdict(float)
        admitted: dict[int, bool] = {}

        for group in self._expansion_groups(query):
            for term, factor in group:
                for posting in self._resolve(term):
                    doc_id = posting.doc_id
                    allowed = admitted.get(doc_id)
                    if allowed is None:
                        allowed = admitted[doc_id] = admit is None or admit(doc_id)
                    if not allowed:
                        continue
                    relevance[doc_id] += posting.weight * factor

        link_scores = self._link_scores if use_link_analysis else None
        ranked: list[ScoredDocument] = []
        for doc_id, doc_relevance in relevance.items():
            if doc_relevance <= 0:
                continue
            authority = hub = 0.0
            score = doc_relevance
            if link_scores is not None:
                authority = link_scores.authority_of(doc_id)
                hub = link_scores.hub_of(doc_id)
                score = doc_relevance * (1.0 + self.link_authority_weight * authority + self.link_hub_weight * hub)
            ranked.append(
                ScoredDocument(doc_id=doc_id, score=score, relevance=doc_relevance, authority=authority, hub=hub)
            )

        ranked.sort(key=lambda entry: (-entry.score, entry.doc_id))
        return ranked

    def _expansion_groups(self, query: Query) -> list[_ExpansionGroup]:
        groups: list[_ExpansionGroup] = []
        for term in sorted(query.terms):
            groups.append([(term, 1.0), *self._correlations.related(term)])

        # A multi-word correlation key spelled out in the query reaches its
        # targets; its words already score on their own.
        for phrase in sorted(self._correlations.phrases()):
            if _contains_sequence(query.tokens, tuple(phrase.split(" "))):
                groups.append(self._correlations.related(phrase))
        return groups

    def _resolve(self, term: str) -> Iterable[Posting]:
        if " " not in term:
            return self._postings.get(term, ())
        return self._phrase_postings(term.split(" "))

    def _phrase_postings(self, words: list[str]) -> list[Posting]:
        """Derive postings for a phrase from the positional postings of its words."""
        head = self._postings.get(words[0])
        if not head:
            return []
        followers: list[dict[tuple[int, str], frozenset[int]]] = []
        for word in words[1:]:
            word_postings = self._postings.get(word)
            if not word_postings:
                return []
            followers.append({(p.doc_id, p.field): frozenset(p.positions) for p in word_postings})

        phrase_postings: list[Posting] = []
        for posting in head:
            key = (posting.doc_id, posting.field)
            position_sets = [follower.get(key) for follower in followers]
            if any(positions is None for positions in position_sets):
                continue
            starts = tuple(
                start
                for start in posting.positions
                if all(start + offset in positions for offset, positions in enumerate(position_sets, start=1))
            )
            if not starts:
                continue
            frequency = len(starts)
            phrase_postings.append(
                Posting(
                    doc_id=posting.doc_id,
                    field=posting.field,
                    frequency=frequency,
                    weight=frequency * self.field_weights[posting.field] * self._doc_weights[posting.doc_id],
                    positions=starts,
                )
            )
        return phrase_postings

    def _normalize_key(self, term: str) -> str:
        words = normalize_terms(self.analyzer, term)
        if not words:
            raise ValueError(f"Correlated term {term!r} has no indexable words")
        return " ".join(words)

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise IndexFrozenError("Index is frozen; build a new generation instead")


def _contains_sequence(tokens: tuple[str, ...], sequence: tuple[str, ...]) -> bool:
    width = len(sequence)
    return any(tokens[start : start + width] == sequence for start in range(len(tokens) - width + 1))
