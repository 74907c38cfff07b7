"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from page_reader.configs.base import BaseSettings
from page_reader.configs.chunking import ChunkingSettings
from page_reader.configs.consolidation import ConsolidationSettings
from page_reader.configs.embedding import EmbeddingSettings
from page_reader.configs.similarity import SimilaritySettings
from page_reader.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    similarity: SimilaritySettings = Field(default_factory=SimilaritySettings)
    consolidation: ConsolidationSettings = Field(default_factory=ConsolidationSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Environment variables are loaded once, on first call.

    Returns:
        Settings: Application settings instance

    Usage:
        from page_reader.configs import get_settings
        settings = get_settings()
    """
    return Settings()
