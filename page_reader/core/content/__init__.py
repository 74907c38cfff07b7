"""Semantic chunking and chunk consolidation."""

from page_reader.core.content.chunker import SemanticChunker, chunk_content
from page_reader.core.content.consolidator import ChunkConsolidator, consolidate

__all__ = ["ChunkConsolidator", "SemanticChunker", "chunk_content", "consolidate"]
