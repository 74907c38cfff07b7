"""
Consolidation models.

Candidates fed to the chunk consolidator and the merged chunks it returns.

Dependencies: pydantic
System role: Consolidator input/output contract
"""

from pydantic import BaseModel, ConfigDict, Field


class ConsolidatableChunk(BaseModel):
    """Retrieved chunk eligible for merging."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Chunk identifier")
    text: str = Field(description="Chunk text")
    score: float = Field(description="Similarity score")
    section_path: str | None = Field(
        default=None,
        description="Flattened section path; None groups under 'root'",
    )


class ConsolidatedChunk(BaseModel):
    """Chunk after consolidation, with the ids it was built from."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Original id, or 'consolidated-' + joined source ids")
    text: str = Field(description="Merged text")
    score: float = Field(description="Length-weighted score of the contributing chunks")
    section_path: str | None = Field(default=None)
    source_chunk_ids: tuple[str, ...] = Field(
        default=(),
        description="Ids of every chunk merged into this one",
    )
