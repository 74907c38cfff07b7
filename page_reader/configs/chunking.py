"""
Chunking configuration settings.

Token budget and overlap used when splitting extracted pages into chunks.

Dependencies: pydantic, pydantic_settings
System role: Semantic chunker defaults
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingSettings(BaseSettings):
    """Semantic chunker configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHUNKING_",
        case_sensitive=False,
        extra="ignore",
    )

    max_tokens: int = Field(
        default=512,
        ge=1,
        description="Target chunk size in estimated tokens (characters / 4)",
    )
    overlap_percentage: float = Field(
        default=15.0,
        ge=0.0,
        le=100.0,
        description="Backward overlap, as a percentage of each chunk's tokens",
    )
