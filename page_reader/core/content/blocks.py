"""
Markdown block parser.

Splits markdown into typed blocks that carry the heading path they sit
under. Code fences, lists, tables and blockquotes are atomic; paragraphs
may be split further by the chunker.

Dependencies: re (stdlib)
System role: First stage of semantic chunking
"""

import re
from dataclasses import dataclass
from enum import Enum


class BlockType(str, Enum):
    """Structural kind of a content block."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    LIST = "list"
    TABLE = "table"
    BLOCKQUOTE = "blockquote"
    OTHER = "other"


@dataclass(frozen=True)
class ContentBlock:
    """A run of markdown with its section path."""

    text: str
    section_path: tuple[str, ...]
    block_type: BlockType
    can_split: bool
    position: int


_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_CLOSING_HASHES_RE = re.compile(r"\s+#+$")
_LIST_ITEM_RE = re.compile(r"^([-*+]\s+|\d+[.)]\s+)")
_FENCE_MARKERS = ("```", "~~~")


def _is_table_row(stripped: str) -> bool:
    return stripped.startswith("|") and stripped.endswith("|") and len(stripped) > 1


def _next_non_blank(lines: list[str], start: int) -> int:
    index = start
    while index < len(lines) and not lines[index].strip():
        index += 1
    return index


class _BlockParser:
    """Single-pass line scanner. Use parse_blocks() instead."""

    def __init__(self, markdown: str) -> None:
        self._lines = markdown.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        self._path: list[str] = []
        self._paragraph: list[str] = []
        self._blocks: list[ContentBlock] = []

    def parse(self) -> list[ContentBlock]:
        lines = self._lines
        index = 0
        while index < len(lines):
            stripped = lines[index].strip()

            if not stripped:
                self._flush_paragraph()
                index += 1
                continue

            heading = _HEADING_RE.match(stripped)
            if heading:
                self._flush_paragraph()
                level = len(heading.group(1))
                title = _CLOSING_HASHES_RE.sub("", heading.group(2)).strip()
                self._path = self._path[: level - 1] + [title]
                index += 1
                continue

            if stripped.startswith(_FENCE_MARKERS):
                index = self._consume_fence(index, stripped[:3])
            elif _LIST_ITEM_RE.match(stripped):
                index = self._consume_list(index)
            elif _is_table_row(stripped):
                index = self._consume_while(index, BlockType.TABLE, lambda s: "|" in s)
            elif stripped.startswith(">"):
                index = self._consume_while(
                    index, BlockType.BLOCKQUOTE, lambda s: s.startswith(">")
                )
            else:
                self._paragraph.append(stripped)
                index += 1

        self._flush_paragraph()
        return self._blocks

    def _emit(self, text: str, block_type: BlockType) -> None:
        text = text.strip()
        if not text:
            return
        self._blocks.append(
            ContentBlock(
                text=text,
                section_path=tuple(self._path),
                block_type=block_type,
                can_split=block_type == BlockType.PARAGRAPH,
                position=len(self._blocks),
            )
        )

    def _flush_paragraph(self) -> None:
        if self._paragraph:
            self._emit("\n".join(self._paragraph), BlockType.PARAGRAPH)
            self._paragraph = []

    def _consume_fence(self, start: int, marker: str) -> int:
        lines = self._lines
        for end in range(start + 1, len(lines)):
            if lines[end].strip().startswith(marker):
                self._flush_paragraph()
                self._emit("\n".join(lines[start : end + 1]), BlockType.CODE)
                return end + 1
        # Unclosed fence: keep the marker line as prose and carry on
        self._paragraph.append(lines[start].strip())
        return start + 1

    def _consume_list(self, start: int) -> int:
        self._flush_paragraph()
        lines = self._lines
        items: list[str] = []
        index = start
        while index < len(lines):
            line = lines[index]
            stripped = line.strip()
            if not stripped:
                following = _next_non_blank(lines, index)
                if following < len(lines) and _LIST_ITEM_RE.match(lines[following].strip()):
                    index = following
                    continue
                break
            if _LIST_ITEM_RE.match(stripped):
                items.append(line.rstrip())
            elif line[:1].isspace() and items:
                items.append(line.rstrip())
            else:
                break
            index += 1
        self._emit("\n".join(items), BlockType.LIST)
        return index

    def _consume_while(self, start: int, block_type: BlockType, keep) -> int:
        self._flush_paragraph()
        lines = self._lines
        collected: list[str] = []
        index = start
        while index < len(lines):
            stripped = lines[index].strip()
            if not stripped or not keep(stripped):
                break
            collected.append(stripped)
            index += 1
        self._emit("\n".join(collected), block_type)
        return index


def parse_blocks(markdown: str) -> list[ContentBlock]:
    """
    Parse markdown into content blocks.

    A heading at level L truncates the section path to L-1 entries and
    appends its title. Headings themselves are not emitted as blocks.

    Args:
        markdown: Markdown text

    Returns:
        list[ContentBlock]: Blocks in document order
    """
    if not markdown or not markdown.strip():
        return []
    return _BlockParser(markdown).parse()
