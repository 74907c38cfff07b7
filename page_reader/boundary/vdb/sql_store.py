"""
SQL-backed vector store.

Persists chunks, embeddings and page metadata with async SQLAlchemy.
Similarity is computed in process over the page's chunks, which keeps
the store portable across SQLite and other SQL databases.

Dependencies: sqlalchemy, aiosqlite, page_reader.boundary.db
System role: Persistent vector store
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from page_reader.boundary.db.base import Base
from page_reader.boundary.db.connection import get_async_engine, get_async_session_factory
from page_reader.boundary.db.models import ChunkModel, DocumentModel
from page_reader.boundary.vdb.vector_schemas import (
    ChunkRow,
    DocumentRow,
    SimilarChunkRow,
    StoredChunk,
)
from page_reader.boundary.vdb.vector_store import VectorStore, rank_by_cosine
from page_reader.configs.vector_store import VectorStoreSettings
from page_reader.core.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


def _to_stored(model: ChunkModel) -> StoredChunk:
    return StoredChunk(
        id=model.id,
        url=model.url,
        section_path=model.section_path,
        text=model.text,
        tokens=model.tokens,
        chunk_index=model.chunk_index,
    )


class SqlVectorStore(VectorStore):
    """
    Async SQLAlchemy vector store.

    Chunks are upserted by id and documents by url, so re-indexing the
    same page is idempotent.
    """

    def __init__(
        self,
        settings: VectorStoreSettings | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        """
        Initialize SQL vector store.

        Args:
            settings: Vector store settings (reads environment when None)
            engine: Optional existing engine (not disposed by close())
        """
        self._owns_engine = engine is None
        self._engine = engine or get_async_engine(settings)
        self._session_factory = get_async_session_factory(self._engine)

    async def initialize(self) -> None:
        """
        Create tables if they do not exist.

        Raises:
            DatabaseConnectionError: Database unreachable
        """
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to initialize vector store: {e}", operation="initialize"
            ) from e
        logger.info(f"{__name__}:initialize - Vector store tables ready")

    async def upsert_chunks(self, rows: list[ChunkRow]) -> None:
        """
        Insert or replace chunks by id.

        Raises:
            DatabaseConnectionError: Write failed
        """
        if not rows:
            return
        try:
            async with self._session_factory() as session:
                for row in rows:
                    await session.merge(ChunkModel(**row.model_dump()))
                await session.commit()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to upsert chunks: {e}",
                operation="upsert_chunks",
                details={"count": len(rows)},
            ) from e
        logger.debug(f"{__name__}:upsert_chunks - Upserted {len(rows)} chunks")

    async def _load(self, url: str) -> list[ChunkModel]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ChunkModel)
                .where(ChunkModel.url == url)
                .order_by(ChunkModel.chunk_index, ChunkModel.id)
            )
            return list(result.scalars().all())

    async def similarity_search(
        self,
        url: str,
        query_vector: list[float],
        limit: int,
    ) -> list[SimilarChunkRow]:
        """
        Rank the page's chunks by cosine similarity.

        Raises:
            DatabaseConnectionError: Read failed
        """
        try:
            models = await self._load(url)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Similarity search failed: {e}", operation="similarity_search"
            ) from e
        candidates = [(_to_stored(model), list(model.embedding)) for model in models]
        return rank_by_cosine(query_vector, candidates, limit)

    async def get_chunks(self, url: str) -> list[StoredChunk]:
        try:
            models = await self._load(url)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to load chunks: {e}", operation="get_chunks"
            ) from e
        return [_to_stored(model) for model in models]

    async def get_document(self, url: str) -> DocumentRow | None:
        try:
            async with self._session_factory() as session:
                model = await session.get(DocumentModel, url)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to load document: {e}", operation="get_document"
            ) from e
        if model is None:
            return None
        return DocumentRow(
            url=model.url,
            title=model.title,
            etag=model.etag,
            last_modified=model.last_modified,
            last_crawled=model.last_crawled,
            content_hash=model.content_hash,
            embedded=model.embedded,
        )

    async def upsert_document(self, document: DocumentRow) -> None:
        try:
            async with self._session_factory() as session:
                await session.merge(DocumentModel(**document.model_dump()))
                await session.commit()
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to upsert document: {e}", operation="upsert_document"
            ) from e

    async def close(self) -> None:
        if self._owns_engine:
            await self._engine.dispose()
