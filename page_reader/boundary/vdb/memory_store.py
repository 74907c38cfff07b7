"""
In-memory vector store.

Keeps chunks and documents in dictionaries. Suitable for tests and for
running without a database.

Dependencies: numpy (via rank_by_cosine)
System role: Ephemeral vector store
"""

import logging

from page_reader.boundary.vdb.vector_schemas import (
    ChunkRow,
    DocumentRow,
    SimilarChunkRow,
    StoredChunk,
)
from page_reader.boundary.vdb.vector_store import VectorStore, rank_by_cosine

logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStore):
    """Dictionary-backed vector store."""

    def __init__(self) -> None:
        self._chunks: dict[str, ChunkRow] = {}
        self._documents: dict[str, DocumentRow] = {}

    async def upsert_chunks(self, rows: list[ChunkRow]) -> None:
        for row in rows:
            self._chunks[row.id] = row
        logger.debug(f"{__name__}:upsert_chunks - Upserted {len(rows)} chunks")

    def _rows_for(self, url: str) -> list[ChunkRow]:
        rows = [row for row in self._chunks.values() if row.url == url]
        return sorted(rows, key=lambda row: row.chunk_index)

    async def similarity_search(
        self,
        url: str,
        query_vector: list[float],
        limit: int,
    ) -> list[SimilarChunkRow]:
        candidates = [
            (StoredChunk(**row.model_dump(exclude={"embedding"})), row.embedding)
            for row in self._rows_for(url)
        ]
        return rank_by_cosine(query_vector, candidates, limit)

    async def get_chunks(self, url: str) -> list[StoredChunk]:
        return [
            StoredChunk(**row.model_dump(exclude={"embedding"})) for row in self._rows_for(url)
        ]

    async def get_document(self, url: str) -> DocumentRow | None:
        return self._documents.get(url)

    async def upsert_document(self, document: DocumentRow) -> None:
        self._documents[document.url] = document
