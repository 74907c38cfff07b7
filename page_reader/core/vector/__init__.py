"""Embedding providers."""

from page_reader.core.vector.embedding_provider import (
    EmbeddingProvider,
    create_embedding_provider,
)

__all__ = ["EmbeddingProvider", "create_embedding_provider"]
