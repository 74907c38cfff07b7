"""
Chunk consolidation configuration settings.

Overlap detection thresholds used when merging retrieved chunks. The
defaults are empirically tuned and kept for behavioral parity.

Dependencies: pydantic, pydantic_settings
System role: Consolidator tuning
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConsolidationSettings(BaseSettings):
    """Thresholds for overlap detection and merging."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CONSOLIDATION_",
        case_sensitive=False,
        extra="ignore",
    )

    min_overlap_chars: int = Field(
        default=30,
        ge=1,
        description="Minimum shared characters for prefix/suffix overlaps",
    )
    short_text_max_words: int = Field(
        default=5,
        ge=1,
        description="Texts with at most this many words use the short-text ratio",
    )
    short_text_word_ratio: float = Field(default=0.4, ge=0.0, le=1.0)
    long_text_word_ratio: float = Field(default=0.6, ge=0.0, le=1.0)
    min_common_words: int = Field(
        default=2,
        ge=1,
        description="Minimum shared words for a word-level overlap",
    )
    boundary_max_words: int = Field(
        default=3,
        ge=1,
        description="Words compared at the end of one chunk and the start of another",
    )
    boundary_min_chars: int = Field(default=3, ge=1)
    merge_overlap_ratio: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Overlap length relative to the shorter text required to merge",
    )
    structural_remaining_ratio: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Below this share of prose a chunk counts as structural markdown",
    )
    splice_window_words: int = Field(
        default=10,
        ge=2,
        description="Words searched near the boundary when splicing two texts",
    )
