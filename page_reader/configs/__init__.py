"""Configuration package."""

from page_reader.configs.chunking import ChunkingSettings
from page_reader.configs.consolidation import ConsolidationSettings
from page_reader.configs.embedding import EmbeddingSettings
from page_reader.configs.settings import Settings, get_settings
from page_reader.configs.similarity import SimilaritySettings
from page_reader.configs.vector_store import VectorStoreSettings

__all__ = [
    "ChunkingSettings",
    "ConsolidationSettings",
    "EmbeddingSettings",
    "Settings",
    "SimilaritySettings",
    "VectorStoreSettings",
    "get_settings",
]
