"""Vector stores."""

from page_reader.boundary.vdb.memory_store import InMemoryVectorStore
from page_reader.boundary.vdb.sql_store import SqlVectorStore
from page_reader.boundary.vdb.vector_schemas import (
    ChunkRow,
    DocumentRow,
    SimilarChunkRow,
    StoredChunk,
    join_section_path,
    split_section_path,
)
from page_reader.boundary.vdb.vector_store import VectorStore
from page_reader.boundary.vdb.vector_store_factory import create_vector_store

__all__ = [
    "ChunkRow",
    "DocumentRow",
    "InMemoryVectorStore",
    "SimilarChunkRow",
    "SqlVectorStore",
    "StoredChunk",
    "VectorStore",
    "create_vector_store",
    "join_section_path",
    "split_section_path",
]
