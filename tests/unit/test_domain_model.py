"""Unit tests for manifest validation and stored documents."""

import pytest

from marian_search.domain.model import Document, Manifest, parse_manifests
from marian_search.domain.search import SearchHit, SearchResponse
from marian_search.errors import ManifestError


def _manifest(**document):
    return {"searchProperty": "docs", "documents": [{"url": "https://docs.example.com/a", **document}]}


class TestParseManifests:
    def test_accepts_camel_case_fields(self, docs_manifests):
        manifests = parse_manifests(docs_manifests)

        assert [m.search_property for m in manifests] == ["docs", "api"]
        assert manifests[0].include_in_global_search is True
        assert manifests[1].include_in_global_search is False
        assert manifests[0].documents[0].headings == ("Patterns", "Options")

    def test_defaults_for_optional_fields(self):
        (manifest,) = parse_manifests([_manifest()])
        document = manifest.documents[0]

        assert manifest.include_in_global_search is False
        assert document.title == ""
        assert document.headings == ()
        assert document.weight == 1.0
        assert document.links == ()

    def test_null_weight_and_lists_are_defaults(self):
        (manifest,) = parse_manifests([_manifest(weight=None, headings=None, links=None)])

        assert manifest.documents[0].weight == 1.0
        assert manifest.documents[0].headings == ()

    def test_zero_weight_means_unweighted(self):
        (manifest,) = parse_manifests([_manifest(weight=0)])

        assert manifest.documents[0].weight == 1.0

    def test_unknown_fields_are_ignored(self):
        (manifest,) = parse_manifests([_manifest(lastModified="2024-01-01")])

        assert manifest.documents[0].url == "https://docs.example.com/a"

    @pytest.mark.parametrize("weight", [-1, -1.5])
    def test_negative_weight_rejected(self, weight):
        with pytest.raises(ManifestError):
            parse_manifests([_manifest(weight=weight)])

    def test_missing_url_rejected(self):
        with pytest.raises(ManifestError):
            parse_manifests([{"searchProperty": "docs", "documents": [{"title": "No URL"}]}])

    def test_missing_search_property_rejected(self):
        with pytest.raises(ManifestError):
            parse_manifests([{"documents": []}])

    @pytest.mark.parametrize("payload", ["manifests", b"[]", {"searchProperty": "docs"}, 42])
    def test_non_sequence_payload_rejected(self, payload):
        with pytest.raises(ManifestError):
            parse_manifests(payload)

    def test_empty_sequence_is_valid(self):
        assert parse_manifests([]) == []


class TestDocument:
    def test_from_manifest_copies_scope(self):
        manifest = Manifest.model_validate(
            {
                "searchProperty": "docs",
                "includeInGlobalSearch": True,
                "documents": [
                    {"title": "Guide", "headings": ["One", "Two"], "url": "https://x/guide", "weight": 2}
                ],
            }
        )

        document = Document.from_manifest(4, manifest, manifest.documents[0])

        assert document.doc_id == 4
        assert document.search_property == "docs"
        assert document.include_in_global_search is True
        assert document.weight == 2.0
        assert document.indexable_fields() == {"title": "Guide", "headings": "One Two", "text": ""}


def test_search_response_serializes_with_aliases():
    response = SearchResponse(
        results=[SearchHit(title="Regex Guide", preview="p", url="https://x")],
        spelling_corrections={"regx": "regex"},
    )

    assert response.model_dump(by_alias=True) == {
        "results": [{"title": "Regex Guide", "preview": "p", "url": "https://x"}],
        "spellingCorrections": {"regx": "regex"},
    }
