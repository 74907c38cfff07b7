"""
Chunk consolidator.

Merges retrieved chunks that overlap or complement each other into
fewer, deduplicated results ranked by score. Chunks are only merged
within the same section path.

Dependencies: page_reader.configs.consolidation, page_reader.models
System role: Post-processing of similarity search results
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from page_reader.configs.consolidation import ConsolidationSettings
from page_reader.models.consolidation import ConsolidatableChunk, ConsolidatedChunk

logger = logging.getLogger(__name__)

ROOT_GROUP = "root"
CONSOLIDATED_PREFIX = "consolidated-"
SCORE_TIE_TOLERANCE = 0.01
MIN_SPLICE_WORDS = 2

_BOUNDARY_PUNCTUATION_RE = re.compile(r"[.,!?;:]")
_STRUCTURE_PATTERNS = [
    re.compile(r"(```|~~~).*?(\1|\Z)", re.DOTALL),
    re.compile(r"^\s{0,3}#{1,6}\s+.*$", re.MULTILINE),
    re.compile(r"`[^`\n]*`"),
    re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+.*$", re.MULTILINE),
    re.compile(r"^\s*>.*$", re.MULTILINE),
    re.compile(r"^\s*\|.*\|\s*$", re.MULTILINE),
    re.compile(r"^\s*([-*_])(?:\s*\1){2,}\s*$", re.MULTILINE),
]
_WHITESPACE_RE = re.compile(r"\s+")


class OverlapKind(str, Enum):
    """How two texts overlap, in detection precedence order."""

    NONE = "none"
    CONTAINMENT = "containment"
    SUFFIX_PREFIX = "suffix_prefix"
    WORD = "word"
    BOUNDARY = "boundary"


@dataclass(frozen=True)
class OverlapMatch:
    """Longest overlap found between two texts."""

    kind: OverlapKind
    text: str = ""
    percentage: float = 0.0

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def has_overlap(self) -> bool:
        return self.kind != OverlapKind.NONE


NO_OVERLAP = OverlapMatch(OverlapKind.NONE)


@dataclass(frozen=True)
class _Working:
    source_ids: tuple[str, ...]
    text: str
    score: float
    weight: int
    section_path: str | None


def _containment(text1: str, text2: str) -> str:
    shorter, longer = sorted((text1, text2), key=len)
    if shorter and (longer.startswith(shorter) or longer.endswith(shorter)):
        return shorter
    return ""


def _suffix_prefix(first: str, second: str, min_chars: int) -> str:
    """Longest suffix of first that is also a prefix of second."""
    if len(first) < min_chars or len(second) < min_chars:
        return ""
    key = second[:min_chars]
    start = max(0, len(first) - len(second))
    position = first.find(key, start)
    while position != -1:
        candidate = first[position:]
        if second.startswith(candidate):
            return candidate
        position = first.find(key, position + 1)
    return ""


def _content_words(text: str) -> list[str]:
    return [word for word in text.lower().split() if len(word) > 2]


def _word_overlap(text1: str, text2: str, settings: ConsolidationSettings) -> str:
    words1 = _content_words(text1)
    words2 = _content_words(text2)
    if not words1 or not words2:
        return ""
    vocabulary = set(words2)
    common = [word for word in words1 if word in vocabulary]
    ratio = len(common) / min(len(words1), len(words2))
    if max(len(words1), len(words2)) <= settings.short_text_max_words:
        threshold = settings.short_text_word_ratio
    else:
        threshold = settings.long_text_word_ratio
    if len(common) >= settings.min_common_words and ratio >= threshold:
        return " ".join(common)
    return ""


def _clean_words(words: list[str]) -> str:
    return _BOUNDARY_PUNCTUATION_RE.sub("", " ".join(words)).lower().strip()


def _boundary_words(first: str, second: str, settings: ConsolidationSettings) -> str:
    words1 = first.split()
    words2 = second.split()
    best = ""
    for count in range(1, settings.boundary_max_words + 1):
        if count > len(words1) or count > len(words2):
            break
        tail = _clean_words(words1[-count:])
        if len(tail) >= settings.boundary_min_chars and tail == _clean_words(words2[:count]):
            best = " ".join(words1[-count:])
    return best


def detect_overlap(
    text1: str,
    text2: str,
    settings: ConsolidationSettings | None = None,
) -> OverlapMatch:
    """
    Find the longest overlap between two texts.

    Checks containment, suffix/prefix overlap (either direction), shared
    word ratio and matching boundary words, keeping the longest match.
    Earlier checks win ties.

    Args:
        text1: First text
        text2: Second text
        settings: Detection thresholds

    Returns:
        OverlapMatch: Best match, NO_OVERLAP when nothing qualifies
    """
    settings = settings or ConsolidationSettings()
    candidates = [
        (OverlapKind.CONTAINMENT, _containment(text1, text2)),
        (OverlapKind.SUFFIX_PREFIX, _suffix_prefix(text1, text2, settings.min_overlap_chars)),
        (OverlapKind.SUFFIX_PREFIX, _suffix_prefix(text2, text1, settings.min_overlap_chars)),
        (OverlapKind.WORD, _word_overlap(text1, text2, settings)),
        (OverlapKind.BOUNDARY, _boundary_words(text1, text2, settings)),
        (OverlapKind.BOUNDARY, _boundary_words(text2, text1, settings)),
    ]

    best_kind, best_text = OverlapKind.NONE, ""
    for kind, text in candidates:
        if text and len(text) > len(best_text):
            best_kind, best_text = kind, text
    if best_kind == OverlapKind.NONE:
        return NO_OVERLAP

    shortest = min(len(text1), len(text2))
    percentage = len(best_text) / shortest if shortest else 0.0
    return OverlapMatch(best_kind, best_text, percentage)


def is_structural(text: str, settings: ConsolidationSettings | None = None) -> bool:
    """
    Whether text is mostly markdown structure rather than prose.

    Args:
        text: Chunk text
        settings: Holds the remaining-prose ratio

    Returns:
        bool: True when less than the configured share of characters
            survives stripping headings, code, lists, quotes, tables and rules
    """
    settings = settings or ConsolidationSettings()
    total = len(_WHITESPACE_RE.sub("", text))
    if total == 0:
        return False
    stripped = text
    for pattern in _STRUCTURE_PATTERNS:
        stripped = pattern.sub("", stripped)
    remaining = len(_WHITESPACE_RE.sub("", stripped))
    return remaining / total < settings.structural_remaining_ratio


def are_complementary(
    text1: str,
    text2: str,
    settings: ConsolidationSettings | None = None,
) -> bool:
    """Whether one text is structural markdown and the other is prose."""
    if not text1.strip() or not text2.strip():
        return False
    return is_structural(text1, settings) != is_structural(text2, settings)


def combine_texts(text1: str, text2: str, window: int = 10) -> str:
    """
    Join two texts, splicing at a shared run of words near the boundary.

    Looks for the longest run of at least two equal words (case-insensitive)
    that starts within the last `window` words of text1 and the first
    `window` words of text2.

    Args:
        text1: Leading text
        text2: Trailing text
        window: Words searched on each side of the boundary

    Returns:
        str: Spliced text, or both texts joined by a space
    """
    words1 = text1.split()
    words2 = text2.split()
    lower1 = [word.lower() for word in words1]
    lower2 = [word.lower() for word in words2]

    best_length, best_i, best_j = 0, -1, -1
    for i in range(max(0, len(words1) - window), len(words1)):
        for j in range(min(window, len(words2))):
            length = 0
            while (
                i + length < len(words1)
                and j + length < len(words2)
                and lower1[i + length] == lower2[j + length]
            ):
                length += 1
            if length >= MIN_SPLICE_WORDS and length > best_length:
                best_length, best_i, best_j = length, i, j

    if best_length:
        return " ".join(words1[: best_i + best_length] + words2[best_j + best_length :])
    return f"{text1} {text2}"


def _weighted_score(first: _Working, second: _Working) -> float:
    total = first.weight + second.weight
    if total == 0:
        return (first.score + second.score) / 2
    return (first.score * first.weight + second.score * second.weight) / total


def _splice_overlap(base: str, other: str, overlap: str, window: int) -> str:
    if other in base:
        return base
    if base in other:
        return other
    if overlap and base.endswith(overlap) and other.startswith(overlap):
        rest = other[len(overlap) :]
        if not rest.strip():
            return base
        if rest[0].isspace():
            return f"{base} {rest.strip()}"
        return base + rest.rstrip()
    if overlap and base.startswith(overlap) and other.endswith(overlap):
        lead = other[: len(other) - len(overlap)]
        if not lead.strip():
            return base
        if lead[-1].isspace():
            return f"{lead.strip()} {base}"
        return lead.lstrip() + base
    return combine_texts(base, other, window)


def _merge_overlapping(
    first: _Working,
    second: _Working,
    match: OverlapMatch,
    settings: ConsolidationSettings,
) -> _Working:
    base, other = first, second
    if abs(first.score - second.score) <= SCORE_TIE_TOLERANCE:
        if len(second.text) > len(first.text):
            base, other = second, first
    elif second.score > first.score:
        base, other = second, first

    text = _splice_overlap(base.text, other.text, match.text, settings.splice_window_words)
    return _Working(
        source_ids=base.source_ids + other.source_ids,
        text=text,
        score=_weighted_score(base, other),
        weight=base.weight + other.weight,
        section_path=base.section_path,
    )


def _merge_complementary(
    first: _Working,
    second: _Working,
    settings: ConsolidationSettings,
) -> _Working:
    structural, prose = (first, second) if is_structural(first.text, settings) else (second, first)
    return _Working(
        source_ids=structural.source_ids + prose.source_ids,
        text=f"{structural.text}\n\n{prose.text}",
        score=_weighted_score(structural, prose),
        weight=structural.weight + prose.weight,
        section_path=first.section_path,
    )


def _best_partner(
    items: list[_Working],
    index: int,
    settings: ConsolidationSettings,
) -> tuple[int, OverlapMatch | None]:
    """Highest-percentage overlapping partner, else the first complementary one."""
    best_index, best_match = -1, None
    complementary_index = -1
    for other in range(index + 1, len(items)):
        match = detect_overlap(items[index].text, items[other].text, settings)
        if match.has_overlap and match.percentage > settings.merge_overlap_ratio:
            if best_match is None or match.percentage > best_match.percentage:
                best_index, best_match = other, match
        elif complementary_index == -1 and are_complementary(
            items[index].text, items[other].text, settings
        ):
            complementary_index = other
    if best_match is not None:
        return best_index, best_match
    return complementary_index, None


def _consolidate_group(items: list[_Working], settings: ConsolidationSettings) -> list[_Working]:
    items = list(items)
    # Each pass either merges (shrinking the list) or ends the loop
    for _ in range(len(items)):
        merged_any = False
        index = 0
        while index < len(items):
            partner, match = _best_partner(items, index, settings)
            if partner == -1:
                index += 1
                continue
            if match is not None:
                items[index] = _merge_overlapping(items[index], items[partner], match, settings)
            else:
                items[index] = _merge_complementary(items[index], items[partner], settings)
            del items[partner]
            merged_any = True
        if not merged_any:
            break
    return items


def _to_output(item: _Working) -> ConsolidatedChunk:
    if len(item.source_ids) == 1:
        chunk_id = item.source_ids[0]
    else:
        chunk_id = CONSOLIDATED_PREFIX + "+".join(item.source_ids)
    return ConsolidatedChunk(
        id=chunk_id,
        text=item.text,
        score=item.score,
        section_path=item.section_path,
        source_chunk_ids=item.source_ids,
    )


def consolidate(
    chunks: list[ConsolidatableChunk],
    settings: ConsolidationSettings | None = None,
) -> list[ConsolidatedChunk]:
    """
    Merge overlapping and complementary chunks within each section.

    Merged scores are character-length-weighted averages of the merged
    chunks, and merged ids list every contributing id. A single chunk
    passes through with itself as the only source.

    Args:
        chunks: Retrieved candidates
        settings: Detection and merge thresholds

    Returns:
        list[ConsolidatedChunk]: Consolidated chunks, highest score first
    """
    settings = settings or ConsolidationSettings()
    groups: dict[str, list[_Working]] = {}
    for chunk in chunks:
        key = chunk.section_path or ROOT_GROUP
        groups.setdefault(key, []).append(
            _Working(
                source_ids=(chunk.id,),
                text=chunk.text,
                score=chunk.score,
                weight=len(chunk.text),
                section_path=chunk.section_path,
            )
        )

    consolidated: list[ConsolidatedChunk] = []
    for items in groups.values():
        consolidated.extend(_to_output(item) for item in _consolidate_group(items, settings))
    consolidated.sort(key=lambda chunk: chunk.score, reverse=True)

    if len(consolidated) < len(chunks):
        logger.debug(
            f"{__name__}:consolidate - {len(chunks)} chunks -> {len(consolidated)} "
            f"across {len(groups)} sections"
        )
    return consolidated


class ChunkConsolidator:
    """Consolidator bound to a set of thresholds."""

    def __init__(self, settings: ConsolidationSettings | None = None) -> None:
        self._settings = settings or ConsolidationSettings()

    def consolidate(self, chunks: list[ConsolidatableChunk]) -> list[ConsolidatedChunk]:
        """Consolidate chunks with this instance's thresholds."""
        return consolidate(chunks, self._settings)
