"""Domain model for manifests and stored documents.

Manifests arrive from the transport as camelCase JSON and are validated with
Pydantic before anything is indexed, so a malformed sync never touches the
published generation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from marian_search.errors import ManifestError


class ManifestDocument(BaseModel):
    """One document as supplied in a manifest."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    title: str = ""
    headings: tuple[str, ...] = ()
    text: str = ""
    weight: float = Field(default=1.0, gt=0)
    url: str = Field(min_length=1)
    preview: str = ""
    links: tuple[str, ...] = ()

    @field_validator("headings", "links", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("weight", mode="before")
    @classmethod
    def _missing_weight_is_one(cls, value: Any) -> Any:
        # Absent, null and zero weights all mean "unweighted"
        return 1.0 if value is None or value == 0 else value


class Manifest(BaseModel):
    """A scoped collection of documents."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    search_property: str = Field(alias="searchProperty", min_length=1)
    include_in_global_search: bool = Field(default=False, alias="includeInGlobalSearch")
    documents: tuple[ManifestDocument, ...] = ()


_MANIFESTS = TypeAdapter(list[Manifest])


def parse_manifests(payload: Iterable[Mapping[str, Any] | Manifest]) -> list[Manifest]:
    """Validate raw sync input.

    Raises:
        ManifestError: when any manifest or document is malformed.
    """
    if isinstance(payload, (str, bytes, Mapping)):
        raise ManifestError("Sync expects a sequence of manifests")
    try:
        return _MANIFESTS.validate_python(list(payload))
    except (ValidationError, TypeError) as exc:
        raise ManifestError(f"Invalid manifest: {exc}") from exc


@dataclass(frozen=True)
class Document:
    """A document as stored in one index generation; ``doc_id`` is dense from 0."""

    doc_id: int
    title: str
    headings: tuple[str, ...]
    text: str
    weight: float
    url: str
    preview: str
    search_property: str
    include_in_global_search: bool
    links: tuple[str, ...] = ()

    @classmethod
    def from_manifest(cls, doc_id: int, manifest: Manifest, source: ManifestDocument) -> Document:
        return cls(
            doc_id=doc_id,
            title=source.title,
            headings=source.headings,
            text=source.text,
            weight=source.weight,
            url=source.url,
            preview=source.preview,
            search_property=manifest.search_property,
            include_in_global_search=manifest.include_in_global_search,
            links=source.links,
        )

    def indexable_fields(self) -> dict[str, str]:
        """Return the weighted text fields; headings are joined with spaces."""
        return {
            "title": self.title,
            "headings": " ".join(self.headings),
            "text": self.text,
        }
