"""
Content chunk domain model.

A token-bounded span of page text with its section provenance.

Dependencies: pydantic
System role: Unit of embedding and retrieval
"""

from pydantic import BaseModel, ConfigDict, Field


class ContentChunk(BaseModel):
    """Immutable chunk produced by the semantic chunker."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="SHA-256 of url, section path and final text")
    text: str = Field(description="Chunk text, overlap included")
    tokens: int = Field(ge=0, description="Estimated tokens (characters / 4)")
    section_path: tuple[str, ...] = Field(
        default=(),
        description="Enclosing heading titles from the document root",
    )
    overlap_tokens: int = Field(
        default=0,
        ge=0,
        description="Estimated tokens of text repeated from the previous chunk",
    )
