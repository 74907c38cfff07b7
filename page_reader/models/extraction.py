"""
Extraction result models.

Structured output of an HTML extractor. Read-only input to the chunker.

Dependencies: pydantic
System role: Extractor to chunker contract
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExtractionMethod(str, Enum):
    """Strategy that produced an extraction result."""

    READABILITY = "readability"
    HTML_PARSER = "html_parser"
    BROWSER = "browser"
    RAW = "raw"


class HeadingInfo(BaseModel):
    """Heading found in the extracted markdown."""

    level: int = Field(ge=1, le=6, description="Heading level (1-6)")
    text: str = Field(description="Heading title")


class CodeBlockInfo(BaseModel):
    """Fenced code block found in the extracted markdown."""

    language: str | None = Field(default=None, description="Fence language tag")
    content: str = Field(description="Code inside the fence")


class ListInfo(BaseModel):
    """List found in the extracted markdown."""

    ordered: bool = Field(default=False, description="Numbered list")
    items: list[str] = Field(default_factory=list, description="List item texts")


class SemanticInfo(BaseModel):
    """Structural summary of the extracted markdown."""

    headings: list[HeadingInfo] = Field(default_factory=list)
    code_blocks: list[CodeBlockInfo] = Field(default_factory=list)
    lists: list[ListInfo] = Field(default_factory=list)
    word_count: int = Field(default=0, ge=0)
    character_count: int = Field(default=0, ge=0)


class ExtractionResult(BaseModel):
    """Content extracted from one page."""

    model_config = ConfigDict(frozen=True)

    title: str | None = Field(default=None, description="Page title")
    text_content: str = Field(default="", description="Plain text of the page")
    markdown_content: str = Field(default="", description="Markdown rendition of the page")
    section_paths: list[str] = Field(
        default_factory=list,
        description="Heading paths found during extraction",
    )
    semantic_info: SemanticInfo | None = Field(default=None)
    extraction_method: ExtractionMethod = Field(default=ExtractionMethod.READABILITY)
    lang: str | None = Field(default=None)
    byline: str | None = Field(default=None)
    excerpt: str | None = Field(default=None)
    note: str | None = Field(
        default=None,
        description="Degradation hint from the extractor, passed through to callers",
    )
