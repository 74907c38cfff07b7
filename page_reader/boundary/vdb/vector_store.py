"""
Vector store interface.

Narrow async interface the search orchestrator and read service use to
persist chunks and run similarity search, plus the cosine ranking shared
by the concrete stores.

Dependencies: numpy
System role: Storage seam for chunk retrieval
"""

from abc import ABC, abstractmethod

import numpy as np

from page_reader.boundary.vdb.vector_schemas import (
    ChunkRow,
    DocumentRow,
    SimilarChunkRow,
    StoredChunk,
)


def rank_by_cosine(
    query_vector: list[float],
    candidates: list[tuple[StoredChunk, list[float]]],
    limit: int,
) -> list[SimilarChunkRow]:
    """
    Rank candidates by cosine similarity to the query.

    Candidates whose dimension differs from the query are skipped.

    Args:
        query_vector: Query embedding
        candidates: (chunk, embedding) pairs
        limit: Maximum results

    Returns:
        list[SimilarChunkRow]: Best matches first, scores clamped to [0, 1]
    """
    usable = [(chunk, vector) for chunk, vector in candidates if len(vector) == len(query_vector)]
    if not usable or limit <= 0:
        return []

    query = np.asarray(query_vector, dtype=float)
    matrix = np.asarray([vector for _, vector in usable], dtype=float)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
    scores = np.clip(scores, 0.0, 1.0)

    order = np.argsort(-scores, kind="stable")[:limit]
    return [
        SimilarChunkRow(
            id=usable[i][0].id,
            text=usable[i][0].text,
            section_path=usable[i][0].section_path,
            score=float(scores[i]),
        )
        for i in order
    ]


class VectorStore(ABC):
    """Async chunk and document store with similarity search."""

    async def initialize(self) -> None:
        """Prepare storage (create tables, open connections)."""
        return None

    @abstractmethod
    async def upsert_chunks(self, rows: list[ChunkRow]) -> None:
        """Insert or replace chunks by id."""

    @abstractmethod
    async def similarity_search(
        self,
        url: str,
        query_vector: list[float],
        limit: int,
    ) -> list[SimilarChunkRow]:
        """Chunks of url most similar to query_vector, best first."""

    @abstractmethod
    async def get_chunks(self, url: str) -> list[StoredChunk]:
        """All chunks of url in storage order."""

    @abstractmethod
    async def get_document(self, url: str) -> DocumentRow | None:
        """Crawl metadata for url, if indexed."""

    @abstractmethod
    async def upsert_document(self, document: DocumentRow) -> None:
        """Insert or replace crawl metadata by url."""

    async def close(self) -> None:
        """Release storage resources."""
        return None
