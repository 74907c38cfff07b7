"""Relational persistence for chunks and page metadata."""

from page_reader.boundary.db.base import Base, TimestampMixin
from page_reader.boundary.db.models import ChunkModel, DocumentModel

__all__ = ["Base", "ChunkModel", "DocumentModel", "TimestampMixin"]
