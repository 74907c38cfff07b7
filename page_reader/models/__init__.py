"""Domain models."""

from page_reader.models.chunk import ContentChunk
from page_reader.models.consolidation import ConsolidatableChunk, ConsolidatedChunk
from page_reader.models.extraction import (
    CodeBlockInfo,
    ExtractionMethod,
    ExtractionResult,
    HeadingInfo,
    ListInfo,
    SemanticInfo,
)
from page_reader.models.search import (
    QueryResult,
    ReadRequest,
    ReadResponse,
    RelevantChunk,
    SearchOptions,
)

__all__ = [
    "CodeBlockInfo",
    "ConsolidatableChunk",
    "ConsolidatedChunk",
    "ContentChunk",
    "ExtractionMethod",
    "ExtractionResult",
    "HeadingInfo",
    "ListInfo",
    "QueryResult",
    "ReadRequest",
    "ReadResponse",
    "RelevantChunk",
    "SearchOptions",
    "SemanticInfo",
]
