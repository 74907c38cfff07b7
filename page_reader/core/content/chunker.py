"""
Semantic chunker.

Turns an extraction result into token-bounded chunks that follow the
page's heading structure, with a little backward overlap so each chunk
keeps the context of the one before it.

Dependencies: page_reader.core.content, page_reader.models
System role: Chunking stage of the content-to-retrieval pipeline
"""

import logging
import math
from dataclasses import dataclass, field

from page_reader.configs.chunking import ChunkingSettings
from page_reader.core.content.blocks import ContentBlock, parse_blocks
from page_reader.core.content.overlap import apply_overlap
from page_reader.core.content.text_utils import (
    CHARS_PER_TOKEN,
    estimate_tokens,
    pack_sentences,
    stable_chunk_id,
)
from page_reader.models.chunk import ContentChunk
from page_reader.models.extraction import ExtractionResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 512
DEFAULT_OVERLAP_PERCENTAGE = 15.0
MIN_BUDGET_RATIO = 0.7
SECTION_BREAK_RATIO = 0.1


@dataclass
class _Draft:
    section_path: tuple[str, ...]
    parts: list[str] = field(default_factory=list)
    length: int = 0

    def add(self, text: str) -> None:
        self.length += len(text) + (2 if self.parts else 0)
        self.parts.append(text)

    def length_with(self, text: str) -> int:
        return self.length + len(text) + (2 if self.parts else 0)

    @property
    def text(self) -> str:
        return "\n\n".join(self.parts).strip()


def working_budget(max_tokens: int, overlap_percentage: float) -> int:
    """
    Tokens available to a chunk body once overlap headroom is reserved.

    Args:
        max_tokens: Configured chunk size
        overlap_percentage: Overlap as a percentage (0-100)

    Returns:
        int: max(max_tokens - overlap reserve, 70% of max_tokens)
    """
    reserve = math.ceil(max_tokens * overlap_percentage / 100)
    return max(max_tokens - reserve, math.ceil(max_tokens * MIN_BUDGET_RATIO))


def _section_changes(
    chunk_path: tuple[str, ...],
    block_path: tuple[str, ...],
    chunk_tokens: int,
    budget: int,
) -> bool:
    if not chunk_path or not block_path:
        return False
    if chunk_path[0] != block_path[0]:
        return True
    return chunk_path != block_path and chunk_tokens >= budget * SECTION_BREAK_RATIO


def _expand_oversized(blocks: list[ContentBlock], budget_chars: int) -> list[ContentBlock]:
    expanded: list[ContentBlock] = []
    for block in blocks:
        if not block.can_split or len(block.text) <= budget_chars:
            expanded.append(block)
            continue
        for piece in pack_sentences(block.text, budget_chars):
            expanded.append(
                ContentBlock(
                    text=piece,
                    section_path=block.section_path,
                    block_type=block.block_type,
                    can_split=False,
                    position=block.position,
                )
            )
    return expanded


def _group_blocks(blocks: list[ContentBlock], budget: int) -> list[_Draft]:
    budget_chars = budget * CHARS_PER_TOKEN
    drafts: list[_Draft] = []
    current: _Draft | None = None

    for block in _expand_oversized(blocks, budget_chars):
        if current is not None:
            too_big = current.length_with(block.text) > budget_chars
            current_tokens = math.ceil(current.length / CHARS_PER_TOKEN)
            if too_big or _section_changes(
                current.section_path, block.section_path, current_tokens, budget
            ):
                drafts.append(current)
                current = None
        if current is None:
            current = _Draft(section_path=block.section_path)
        current.add(block.text)

    if current is not None:
        drafts.append(current)
    return [draft for draft in drafts if draft.text]


def chunk_content(
    extraction: ExtractionResult,
    url: str,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    overlap_percentage: float = DEFAULT_OVERLAP_PERCENTAGE,
) -> list[ContentChunk]:
    """
    Split an extraction result into semantic chunks.

    Deterministic: the same extraction and url always give the same ids
    and texts. Never raises on malformed markdown.

    Args:
        extraction: Extracted page content
        url: Page URL, part of every chunk id
        max_tokens: Target chunk size in estimated tokens
        overlap_percentage: Backward overlap as a percentage (0-100)

    Returns:
        list[ContentChunk]: Chunks in document order, empty for blank pages
    """
    max_tokens = max(1, int(max_tokens))
    overlap_percentage = min(max(float(overlap_percentage), 0.0), 100.0)

    markdown = extraction.markdown_content or extraction.text_content
    blocks = parse_blocks(markdown)
    if not blocks:
        return []

    budget = working_budget(max_tokens, overlap_percentage)
    drafts = _group_blocks(blocks, budget)
    finals = apply_overlap([draft.text for draft in drafts], max_tokens, overlap_percentage)

    chunks = [
        ContentChunk(
            id=stable_chunk_id(url, draft.section_path, text),
            text=text,
            tokens=estimate_tokens(text),
            section_path=draft.section_path,
            overlap_tokens=overlap_tokens,
        )
        for draft, (text, overlap_tokens) in zip(drafts, finals)
    ]
    logger.debug(
        f"{__name__}:chunk_content - {len(blocks)} blocks -> {len(chunks)} chunks "
        f"(max_tokens={max_tokens}, budget={budget}, overlap={overlap_percentage}%)"
    )
    return chunks


class SemanticChunker:
    """Chunker bound to default settings; all state is call-scoped."""

    def __init__(self, settings: ChunkingSettings | None = None) -> None:
        """
        Initialize chunker.

        Args:
            settings: Chunking defaults (reads environment when None)
        """
        self._settings = settings or ChunkingSettings()

    def chunk(
        self,
        extraction: ExtractionResult,
        url: str,
        max_tokens: int | None = None,
        overlap_percentage: float | None = None,
    ) -> list[ContentChunk]:
        """
        Chunk an extraction result, falling back to configured defaults.

        Args:
            extraction: Extracted page content
            url: Page URL
            max_tokens: Override for the chunk size
            overlap_percentage: Override for the overlap percentage

        Returns:
            list[ContentChunk]: Chunks in document order
        """
        return chunk_content(
            extraction,
            url,
            max_tokens=max_tokens if max_tokens is not None else self._settings.max_tokens,
            overlap_percentage=(
                overlap_percentage
                if overlap_percentage is not None
                else self._settings.overlap_percentage
            ),
        )
