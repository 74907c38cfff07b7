"""
Chunk and document ORM models.

Chunks are keyed by their content-addressed id so re-indexing a page
upserts instead of duplicating. Documents hold per-URL crawl metadata.

Dependencies: sqlalchemy, page_reader.boundary.db.base
System role: Persistence schema for the SQL vector store
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from page_reader.boundary.db.base import Base, TimestampMixin


class ChunkModel(Base, TimestampMixin):
    """
    Stored chunk with its embedding.

    Attributes:
        id: SHA-256 chunk id (primary key)
        url: Page URL the chunk came from
        section_path: Heading titles joined with " > ", None at the root
        text: Chunk text
        tokens: Estimated token count
        chunk_index: Position of the chunk within its page
        embedding: Vector stored as a JSON array
    """

    __tablename__ = "chunks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    section_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    embedding: Mapped[list[float]] = mapped_column(JSON, nullable=False)

    __table_args__ = (Index("ix_chunks_url_index", "url", "chunk_index"),)

    def __repr__(self) -> str:
        return f"<ChunkModel(id={self.id[:12]}, url={self.url}, index={self.chunk_index})>"


class DocumentModel(Base, TimestampMixin):
    """
    Crawl metadata for one page.

    Attributes:
        url: Page URL (primary key)
        title: Extracted title
        etag: HTTP ETag of the last fetch
        last_modified: HTTP Last-Modified of the last fetch
        last_crawled: When the page was last indexed
        content_hash: SHA-256 of the extracted text
        embedded: Whether the chunks were stored with embeddings
    """

    __tablename__ = "documents"

    url: Mapped[str] = mapped_column(String(2048), primary_key=True)
    title: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    etag: Mapped[str | None] = mapped_column(String(256), nullable=True)
    last_modified: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_crawled: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    embedded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<DocumentModel(url={self.url}, title={self.title})>"
