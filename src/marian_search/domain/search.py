"""Search response value objects returned to the transport layer."""

from pydantic import BaseModel, ConfigDict, Field


class SearchHit(BaseModel):
    """A single search result as exposed to callers."""

    model_config = ConfigDict(frozen=True)

    title: str
    preview: str
    url: str


class SearchResponse(BaseModel):
    """Ranked hits plus a misspelled-term -> correction mapping.

    Serialize with ``model_dump(by_alias=True)`` for the wire format.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    results: list[SearchHit] = Field(default_factory=list)
    spelling_corrections: dict[str, str] = Field(default_factory=dict, alias="spellingCorrections")
