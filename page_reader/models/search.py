"""
Search and read models.

Options for similarity search and the caller-facing read request/response.

Dependencies: pydantic
System role: Public contract of the read pipeline
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class SearchOptions(BaseModel):
    """Per-call overrides for similarity search."""

    concurrency: int | None = Field(
        default=None,
        description="Queries per batch; clamped to 1-10",
    )
    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Minimum similarity score; settings default when None",
    )
    timeout_ms: int | None = Field(
        default=None,
        ge=1,
        description="Per-call timeout override in milliseconds",
    )
    use_rate_limiter: bool = Field(
        default=True,
        description="Route embedding calls through the rate limiter when one is configured",
    )


class RelevantChunk(BaseModel):
    """Chunk returned to callers."""

    id: str = Field(description="Chunk or consolidated chunk id")
    text: str = Field(description="Chunk text")
    score: float | None = Field(
        default=None,
        description="Similarity score; None when chunks are listed without a query",
    )
    section_path: list[str] = Field(default_factory=list)


class QueryResult(BaseModel):
    """Results for one query."""

    query: str = Field(description="Query text; empty when listing all chunks")
    results: list[RelevantChunk] = Field(default_factory=list)


class ReadRequest(BaseModel):
    """Request to read a page, optionally focused by one or more queries."""

    url: str = Field(min_length=1, description="Page URL")
    query: str | list[str] | None = Field(
        default=None,
        description="Query or queries; empty means return all stored chunks",
    )
    max_results: int = Field(default=8, ge=1, le=50, description="Results per query")

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, value: str) -> str:
        """Reject whitespace-only URLs."""
        if not value.strip():
            raise ValueError("url must not be blank")
        return value.strip()

    def normalized_queries(self) -> list[str]:
        """
        Return non-empty, stripped, de-duplicated queries in input order.

        Returns:
            list[str]: Queries to search; empty when all chunks were requested
        """
        raw = [self.query] if isinstance(self.query, str) else list(self.query or [])
        queries: list[str] = []
        for item in raw:
            stripped = item.strip()
            if stripped and stripped not in queries:
                queries.append(stripped)
        return queries


class ReadResponse(BaseModel):
    """Page content focused on the requested queries."""

    url: str
    title: str | None = None
    last_crawled: datetime | None = None
    results: list[QueryResult] = Field(default_factory=list)
    note: str | None = Field(
        default=None,
        description="Degradation hint (extractor fallback or missing semantic search)",
    )
