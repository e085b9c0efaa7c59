"""Unit tests for the weighted-field inverted index."""

import pytest

from marian_search.errors import IndexFrozenError
from marian_search.search.correlations import CorrelationEdge
from marian_search.search.inverted_index import InvertedIndex
from marian_search.search.link_analysis import AuthorityHubScores
from marian_search.search.query import parse_query


def _doc(title: str = "", text: str = "", headings: str = "") -> dict[str, str]:
    return {"title": title, "headings": headings, "text": text}


class TestAdd:
    def test_posting_weight_combines_frequency_field_and_document_weight(self):
        index = InvertedIndex()
        index.add(0, _doc(title="Regex Guide", text="regex and regex"), weight=2.0)

        postings = {posting.field: posting for posting in index.postings("regex")}
        assert postings["title"].frequency == 1
        assert postings["title"].weight == pytest.approx(20.0)
        assert postings["text"].frequency == 2
        assert postings["text"].weight == pytest.approx(4.0)
        assert postings["text"].positions == (0, 2)

    def test_on_word_called_once_per_distinct_token(self):
        index = InvertedIndex()
        seen: list[str] = []
        index.add(0, _doc(title="Regex Guide", headings="Regex", text="regex basics"), on_word=seen.append)

        assert sorted(seen) == ["basics", "guide", "regex"]

    def test_tolerates_empty_and_missing_fields(self):
        index = InvertedIndex()
        index.add(0, {"title": "", "headings": None, "text": "content"})
        index.add(1, {})

        assert index.document_count == 2
        assert index.vocabulary == frozenset({"content"})

    def test_rejects_unknown_field(self):
        index = InvertedIndex()

        with pytest.raises(ValueError, match="Unknown fields"):
            index.add(0, {"body": "text"})

    def test_rejects_duplicate_document(self):
        index = InvertedIndex()
        index.add(0, _doc(text="a"))

        with pytest.raises(ValueError, match="already added"):
            index.add(0, _doc(text="b"))

    def test_rejects_non_positive_weights(self):
        with pytest.raises(ValueError, match="positive"):
            InvertedIndex({"title": 0.0})
        with pytest.raises(ValueError, match="positive"):
            InvertedIndex().add(0, _doc(text="a"), weight=0)

    def test_frozen_index_rejects_mutation(self):
        index = InvertedIndex().freeze()

        assert index.frozen
        with pytest.raises(IndexFrozenError):
            index.add(0, _doc(text="late"))
        with pytest.raises(IndexFrozenError):
            index.correlate_word("a", "b", 0.5)

    def test_freeze_rejects_link_scores_that_miss_documents(self):
        index = InvertedIndex()
        index.add(0, _doc(text="a"))
        index.add(1, _doc(text="b"))

        with pytest.raises(ValueError, match="Link scores"):
            index.freeze(AuthorityHubScores.zeros(1))


class TestSearch:
    def test_exact_match_score_is_sum_of_posting_weights(self):
        index = InvertedIndex()
        index.add(0, _doc(title="Regex", headings="Regex", text="regex"))

        results = index.search(parse_query("regex"))

        assert [r.doc_id for r in results] == [0]
        assert results[0].score == pytest.approx(10.0 + 3.0 + 1.0)
        assert results[0].relevance == results[0].score

    def test_scores_sum_across_query_terms(self):
        index = InvertedIndex()
        index.add(0, _doc(title="Aggregation", text="pipeline"))

        results = index.search(parse_query("aggregation pipeline"))

        assert results[0].score == pytest.approx(11.0)

    def test_title_match_outranks_text_match(self):
        index = InvertedIndex()
        index.add(0, _doc(text="lookup lookup lookup"))
        index.add(1, _doc(title="Lookup"))

        assert [r.doc_id for r in index.search(parse_query("lookup"))] == [1, 0]

    def test_documents_without_matches_are_excluded(self):
        index = InvertedIndex()
        index.add(0, _doc(text="regex"))
        index.add(1, _doc(text="unrelated content"))

        assert [r.doc_id for r in index.search(parse_query("regex"))] == [0]

    def test_unknown_term_returns_empty_sequence(self):
        index = InvertedIndex()
        index.add(0, _doc(text="regex"))

        assert index.search(parse_query("nothing")) == []
        assert index.search(parse_query("")) == []

    def test_ties_break_by_ascending_document_id(self):
        index = InvertedIndex()
        for doc_id in range(3):
            index.add(doc_id, _doc(text="same words"))

        assert [r.doc_id for r in index.search(parse_query("same"))] == [0, 1, 2]

    def test_admit_predicate_filters_documents(self):
        index = InvertedIndex()
        index.add(0, _doc(title="Regex"))
        index.add(1, _doc(text="regex"))

        results = index.search(parse_query("regex"), admit=lambda doc_id: doc_id != 0)

        assert [r.doc_id for r in results] == [1]


class TestCorrelatedSearch:
    def test_correlated_phrase_matches_at_discount(self):
        index = InvertedIndex(correlations=[CorrelationEdge("regular expression", "regex", 0.8)])
        index.add(0, _doc(text="regular expression basics"))
        index.add(1, _doc(title="Other", text="unrelated content"))

        results = index.search(parse_query("regex"))

        assert [r.doc_id for r in results] == [0]
        assert results[0].score == pytest.approx(0.8)

    def test_phrase_words_must_be_adjacent(self):
        index = InvertedIndex(correlations=[CorrelationEdge("regular expression", "regex", 0.8)])
        index.add(0, _doc(text="regular old expression"))

        assert index.search(parse_query("regex")) == []

    def test_correlation_registered_after_documents_still_applies(self):
        index = InvertedIndex()
        index.add(0, _doc(headings="Regular Expression"))
        index.correlate_word("Regular Expression", "REGEX", 0.5)

        results = index.search(parse_query("regex"))

        assert results[0].score == pytest.approx(3.0 * 0.5)

    def test_query_phrase_reaches_correlated_term(self):
        index = InvertedIndex(correlations=[CorrelationEdge("regular expression", "regex", 0.8)])
        index.add(0, _doc(text="regex"))

        results = index.search(parse_query("regular expression"))

        assert [r.doc_id for r in results] == [0]
        assert results[0].score == pytest.approx(0.8)

    def test_directional_edge_only_expands_forward(self):
        index = InvertedIndex(correlations=[CorrelationEdge("ip", "address", 0.1, directional=True)])
        index.add(0, _doc(text="address"))
        index.add(1, _doc(text="ip"))

        assert [(r.doc_id, round(r.score, 6)) for r in index.search(parse_query("ip"))] == [(1, 1.0), (0, 0.1)]
        assert [r.doc_id for r in index.search(parse_query("address"))] == [0]

    def test_exact_and_correlated_matches_accumulate(self):
        index = InvertedIndex(correlations=[CorrelationEdge("regexp", "regex", 0.8)])
        index.add(0, _doc(text="regex regexp"))

        results = index.search(parse_query("regex"))

        assert results[0].score == pytest.approx(1.0 + 0.8)

    def test_adding_an_edge_never_lowers_existing_scores(self):
        without_edge = InvertedIndex()
        with_edge = InvertedIndex(correlations=[CorrelationEdge("join", "lookup", 0.6)])
        for index in (without_edge, with_edge):
            index.add(0, _doc(text="join"))
            index.add(1, _doc(text="lookup join"))
            index.add(2, _doc(text="lookup"))

        before = {r.doc_id: r.score for r in without_edge.search(parse_query("join"))}
        after = {r.doc_id: r.score for r in with_edge.search(parse_query("join"))}

        for doc_id, score in before.items():
            assert after[doc_id] >= score
        assert after[2] == pytest.approx(0.6)


class TestLinkBlend:
    def _index(self, authority: tuple[float, ...], hub: tuple[float, ...]) -> InvertedIndex:
        index = InvertedIndex(link_authority_weight=1.0, link_hub_weight=0.5)
        index.add(0, _doc(text="shared topic"))
        index.add(1, _doc(text="shared topic"))
        index.add(2, _doc(text="different"))
        return index.freeze(AuthorityHubScores(authority=authority, hub=hub))

    def test_authority_boosts_ranking_when_requested(self):
        index = self._index(authority=(0.0, 0.8, 0.6), hub=(0.0, 0.0, 0.0))

        linked = index.search(parse_query("shared"), use_link_analysis=True)
        plain = index.search(parse_query("shared"))

        assert [r.doc_id for r in linked] == [1, 0]
        assert linked[0].score == pytest.approx(1.0 * (1.0 + 0.8))
        assert linked[0].authority == pytest.approx(0.8)
        assert [r.doc_id for r in plain] == [0, 1]
        assert plain[1].authority == 0.0

    def test_hub_contributes_with_its_own_weight(self):
        index = self._index(authority=(0.0, 0.0, 0.0), hub=(0.4, 0.0, 0.0))

        results = index.search(parse_query("shared"), use_link_analysis=True)

        assert results[0].doc_id == 0
        assert results[0].score == pytest.approx(1.0 * (1.0 + 0.5 * 0.4))

    def test_link_scores_never_surface_unmatched_documents(self):
        index = self._index(authority=(0.0, 0.0, 1.0), hub=(0.0, 0.0, 1.0))

        results = index.search(parse_query("shared"), use_link_analysis=True)

        assert 2 not in [r.doc_id for r in results]

    def test_missing_link_scores_behave_like_zero(self):
        index = InvertedIndex()
        index.add(0, _doc(text="topic"))
        index.freeze()

        results = index.search(parse_query("topic"), use_link_analysis=True)

        assert results[0].score == pytest.approx(1.0)
