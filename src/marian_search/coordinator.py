"""Index coordinator: builds, publishes and serves index generations.

A generation bundles the inverted index, the document store, the link graph
and the vocabulary produced by one ``sync``. The coordinator swaps the
published generation with a single reference assignment, so a search always
sees one consistent generation.

Spelling models are attached on a separate, asynchronous track. A search
that runs right after ``sync`` may still use the previous generation's
spelling model (or none at all) until the new model has been built. That
window is expected; callers treat a missing model as "no suggestions".
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
import itertools
import logging
from typing import Any

from marian_search.config import Settings
from marian_search.domain.model import Document, parse_manifests
from marian_search.domain.search import SearchHit, SearchResponse
from marian_search.errors import DictionaryLoadFailure, ManifestError, SearchEngineError, StillIndexing, UnknownRequest
from marian_search.observability.metrics import (
    INDEX_DOC_COUNT,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    SPELLING_MODEL_BUILDS,
    SYNC_LATENCY,
    SYNC_REQUESTS,
    track_latency,
)
from marian_search.observability.tracing import create_span
from marian_search.search.analyzers import get_analyzer
from marian_search.search.correlations import DEFAULT_CORRELATIONS, CorrelationEdge
from marian_search.search.inverted_index import InvertedIndex
from marian_search.search.link_analysis import LinkGraph, LinkGraphBuilder, compute_hits
from marian_search.search.models import ScoredDocument
from marian_search.search.query import Query, document_filter, parse_query, select_scope
from marian_search.spelling.dictionary import DictionaryProvider, dictionary_from_settings
from marian_search.spelling.model import SpellingModel, build_spelling_model


logger = logging.getLogger(__name__)


class CoordinatorState(str, Enum):
    """Whether a generation has been published."""

    NOT_READY = "not-ready"
    READY = "ready"


@dataclass(frozen=True)
class Generation:
    """One complete, immutable index snapshot."""

    number: int
    index: InvertedIndex
    documents: tuple[Document, ...]
    link_graph: LinkGraph
    vocabulary: frozenset[str]

    @property
    def document_count(self) -> int:
        return len(self.documents)


class IndexCoordinator:
    """Serve ``sync`` and ``search`` requests against the published generation."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        dictionary: DictionaryProvider | None = None,
        correlations: Iterable[CorrelationEdge] = DEFAULT_CORRELATIONS,
    ) -> None:
        self.settings = settings or Settings()
        self.dictionary = dictionary or dictionary_from_settings(self.settings)
        self.correlations = tuple(correlations)
        self._analyzer = get_analyzer(self.settings.analyzer)

        self._generation: Generation | None = None
        self._generation_numbers = itertools.count(1)
        self._spelling: SpellingModel | None = None
        self._spelling_generation = 0
        self._spelling_task: asyncio.Task | None = None

    @property
    def state(self) -> CoordinatorState:
        return CoordinatorState.NOT_READY if self._generation is None else CoordinatorState.READY

    @property
    def generation(self) -> Generation | None:
        return self._generation

    @property
    def spelling_model(self) -> SpellingModel | None:
        return self._spelling

    @property
    def spelling_generation(self) -> int:
        """Number of the generation the installed spelling model was built for (0 = none)."""
        return self._spelling_generation

    # ------------------------------------------------------------------
    # Rebuild
    # ------------------------------------------------------------------
    def build_generation(self, manifests: Iterable[Mapping[str, Any]]) -> Generation:
        """Build a complete generation off to the side without publishing it.

        Raises:
            ManifestError: for malformed manifests or duplicate document URLs.
        """
        parsed = parse_manifests(manifests)
        index = InvertedIndex(
            self.settings.field_weights(),
            analyzer=self._analyzer,
            correlations=self.correlations,
            link_authority_weight=self.settings.link_authority_weight,
            link_hub_weight=self.settings.link_hub_weight,
        )
        links = LinkGraphBuilder()
        words: set[str] = set()
        documents: list[Document] = []

        for manifest in parsed:
            for source in manifest.documents:
                document = Document.from_manifest(len(documents), manifest, source)
                try:
                    links.add(document.doc_id, document.url, document.links)
                except ValueError as exc:
                    raise ManifestError(str(exc)) from exc
                index.add(
                    document.doc_id,
                    document.indexable_fields(),
                    weight=document.weight,
                    on_word=words.add,
                )
                documents.append(document)

        graph = links.build()
        scores = compute_hits(
            graph,
            max_iterations=self.settings.hits_max_iterations,
            tolerance=self.settings.hits_tolerance,
        )
        index.freeze(scores)

        return Generation(
            number=next(self._generation_numbers),
            index=index,
            documents=tuple(documents),
            link_graph=graph,
            vocabulary=frozenset(words),
        )

    async def sync(self, manifests: Iterable[Mapping[str, Any]]) -> Generation:
        """Rebuild from ``manifests``, publish the result, and schedule spelling.

        A failed rebuild leaves the published generation untouched.
        """
        with create_span("marian.sync"), track_latency(SYNC_LATENCY):
            try:
                generation = self.build_generation(manifests)
            except SearchEngineError as exc:
                SYNC_REQUESTS.labels(outcome=exc.code).inc()
                logger.warning("Sync rejected: %s", exc)
                raise
            self._publish(generation)
            SYNC_REQUESTS.labels(outcome="ok").inc()

        self._schedule_spelling(generation)
        return generation

    def _publish(self, generation: Generation) -> None:
        self._generation = generation
        INDEX_DOC_COUNT.set(generation.document_count)
        logger.info(
            "Published generation %d: %d documents, %d terms",
            generation.number,
            generation.document_count,
            len(generation.vocabulary),
        )

    # ------------------------------------------------------------------
    # Spelling
    # ------------------------------------------------------------------
    def _schedule_spelling(self, generation: Generation) -> None:
        pending = self._spelling_task
        if pending is not None and not pending.done():
            pending.cancel()
        self._spelling_task = asyncio.get_running_loop().create_task(
            self._build_spelling(generation),
            name=f"marian-spelling-{generation.number}",
        )

    async def _build_spelling(self, generation: Generation) -> SpellingModel | None:
        with create_span(
            "marian.spelling",
            attributes={"marian.generation": generation.number},
            context={"generation": generation.number},
        ):
            try:
                lines = await self.dictionary.load()
            except DictionaryLoadFailure as exc:
                SPELLING_MODEL_BUILDS.labels(outcome="dictionary_failure").inc()
                logger.warning("Spelling suggestions unavailable for generation %d: %s", generation.number, exc)
                return None

            model = await asyncio.to_thread(
                build_spelling_model,
                lines,
                generation.vocabulary,
                max_suggestions=self.settings.spelling_max_suggestions,
            )

            if generation.number < self._spelling_generation:
                SPELLING_MODEL_BUILDS.labels(outcome="superseded").inc()
                logger.debug("Discarding spelling model for superseded generation %d", generation.number)
                return None

            self._spelling = model
            self._spelling_generation = generation.number
            SPELLING_MODEL_BUILDS.labels(outcome="ready").inc()
            logger.info("Spelling model ready for generation %d (%d words)", generation.number, len(model))
            return model

    async def wait_for_spelling(self) -> SpellingModel | None:
        """Wait until the most recently scheduled spelling build has finished."""
        while True:
            task = self._spelling_task
            if task is None:
                return self._spelling
            with suppress(asyncio.CancelledError):
                await task
            if task is self._spelling_task:
                return self._spelling

    async def close(self) -> None:
        """Cancel any pending spelling build."""
        task = self._spelling_task
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._spelling_task = None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def search(
        self,
        query_string: str,
        search_properties: Sequence[str] | str | None = None,
        use_link_analysis: bool = False,
    ) -> SearchResponse:
        """Search the published generation.

        Raises:
            StillIndexing: before the first successful ``sync``.
            QueryTooLong: when the query exceeds ``max_query_terms``.
        """
        # Capture one consistent snapshot up front
        generation = self._generation
        spelling = self._spelling
        context = {"generation": generation.number} if generation is not None else {}

        with create_span("marian.search", context=context), track_latency(SEARCH_LATENCY):
            try:
                if generation is None:
                    raise StillIndexing()
                query = parse_query(query_string, analyzer=self._analyzer, max_terms=self.settings.max_query_terms)
            except SearchEngineError as exc:
                SEARCH_REQUESTS.labels(outcome=exc.code).inc()
                raise

            scope = select_scope(search_properties)
            ranked = generation.index.search(
                query,
                admit=document_filter(scope, generation.documents),
                use_link_analysis=use_link_analysis,
            )
            corrections = self._spelling_corrections(query, ranked, spelling)

            logger.debug(
                "Search matched %d documents (%d terms, corrections=%d)",
                len(ranked),
                len(query.terms),
                len(corrections),
            )
            SEARCH_REQUESTS.labels(outcome="ok").inc()

        hits = [self._to_hit(generation.documents[match.doc_id]) for match in ranked]
        return SearchResponse(results=hits, spelling_corrections=corrections)

    def _spelling_corrections(
        self,
        query: Query,
        ranked: Sequence[ScoredDocument],
        spelling: SpellingModel | None,
    ) -> dict[str, str]:
        if spelling is None:
            return {}
        # Only poor results justify suggestions
        if ranked and ranked[0].score > self.settings.spelling_score_threshold:
            return {}

        corrections: dict[str, str] = {}
        for term in sorted(query.terms):
            suggestions = spelling.suggest(term)
            if suggestions:
                corrections[term] = suggestions[0]
        return corrections

    @staticmethod
    def _to_hit(document: Document) -> SearchHit:
        return SearchHit(title=document.title, preview=document.preview, url=document.url)

    # ------------------------------------------------------------------
    # Request dispatch
    # ------------------------------------------------------------------
    async def handle_request(self, message: Mapping[str, Any]) -> dict[str, Any]:
        """Dispatch a ``{"search": {...}}`` or ``{"sync": [...]}`` request.

        Raises:
            UnknownRequest: for any other request shape.
        """
        if not isinstance(message, Mapping):
            raise UnknownRequest([])

        if "search" in message:
            payload = message["search"]
            if not isinstance(payload, Mapping):
                raise UnknownRequest(["search"])
            properties = payload.get("searchProperties", payload.get("searchProperty"))
            use_link_analysis = payload.get("useLinkAnalysis", payload.get("useHits", False))
            query_string = payload.get("queryString")
            response = self.search(
                "" if query_string is None else str(query_string),
                properties,
                bool(use_link_analysis),
            )
            return {"results": response.model_dump(by_alias=True)}

        if "sync" in message:
            await self.sync(message["sync"])
            return {"ok": True}

        raise UnknownRequest(sorted(str(key) for key in message))
