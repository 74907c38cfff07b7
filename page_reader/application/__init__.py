"""Application services exposing the read pipeline."""

from page_reader.application.read_service import ContentExtractor, PageReaderService

__all__ = ["ContentExtractor", "PageReaderService"]
