"""
Vector store schemas.

Pydantic models for rows written to and read from the vector store.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from datetime import datetime

from pydantic import BaseModel, Field

SECTION_PATH_SEPARATOR = " > "


def join_section_path(section_path: list[str] | tuple[str, ...]) -> str | None:
    """Flatten heading titles for storage; None for the document root."""
    return SECTION_PATH_SEPARATOR.join(section_path) if section_path else None


def split_section_path(section_path: str | None) -> list[str]:
    """Inverse of join_section_path."""
    if not section_path:
        return []
    return section_path.split(SECTION_PATH_SEPARATOR)


class ChunkRow(BaseModel):
    """Chunk persisted with its embedding."""

    id: str = Field(description="Content-addressed chunk id")
    url: str = Field(description="Page URL")
    section_path: str | None = Field(default=None, description="Flattened section path")
    text: str = Field(description="Chunk text")
    tokens: int = Field(default=0, ge=0, description="Estimated tokens")
    embedding: list[float] = Field(description="Embedding vector")
    chunk_index: int = Field(default=0, ge=0, description="Position within the page")


class StoredChunk(BaseModel):
    """Chunk read back without its embedding."""

    id: str
    url: str
    section_path: str | None = None
    text: str
    tokens: int = 0
    chunk_index: int = 0


class SimilarChunkRow(BaseModel):
    """Single result from vector search."""

    id: str = Field(description="Chunk id")
    text: str = Field(description="Chunk text")
    section_path: str | None = Field(default=None)
    score: float = Field(ge=0.0, le=1.0, description="Cosine similarity clamped to 0.0-1.0")


class DocumentRow(BaseModel):
    """Crawl metadata for one page."""

    url: str
    title: str | None = None
    etag: str | None = None
    last_modified: str | None = None
    last_crawled: datetime | None = None
    content_hash: str | None = None
    embedded: bool = Field(default=True, description="False when chunks were stored without vectors")
