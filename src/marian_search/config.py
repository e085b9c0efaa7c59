"""Centralized configuration for marian-search using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed engine tunables loaded from ``MARIAN_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MARIAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Field weights
    title_weight: float = Field(default=10.0, gt=0, description="Weight of term occurrences in titles")
    headings_weight: float = Field(default=3.0, gt=0, description="Weight of term occurrences in headings")
    text_weight: float = Field(default=1.0, gt=0, description="Weight of term occurrences in body text")

    # Query settings
    max_query_terms: int = Field(default=10, ge=1, description="Maximum distinct terms accepted in a query")
    analyzer: str = Field(default="default", description="Analyzer used for documents and queries")

    # Spelling settings
    spelling_score_threshold: float = Field(
        default=0.6,
        ge=0.0,
        description="Top-result score at or below which spelling suggestions are attempted (heuristic)",
    )
    spelling_max_suggestions: int = Field(default=5, ge=1, description="Maximum candidates returned by suggest()")
    dictionary_path: Path | None = Field(
        default=None,
        description="Hunspell .dic file or plain word list used as the reference dictionary",
    )

    # Link analysis
    hits_max_iterations: int = Field(default=50, ge=1, description="Upper bound on HITS refinement rounds")
    hits_tolerance: float = Field(default=1e-6, gt=0, description="Convergence tolerance for HITS scores")
    link_authority_weight: float = Field(default=1.0, ge=0, description="Blend weight of authority scores")
    link_hub_weight: float = Field(default=0.25, ge=0, description="Blend weight of hub scores")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_dictionary_path(self) -> "Settings":
        if self.dictionary_path is not None and self.dictionary_path.is_dir():
            raise ValueError(f"MARIAN_DICTIONARY_PATH must point to a file, got directory {self.dictionary_path}")
        return self

    def field_weights(self) -> dict[str, float]:
        """Return the per-field importance weights used by the inverted index."""
        return {
            "title": self.title_weight,
            "headings": self.headings_weight,
            "text": self.text_weight,
        }
