"""
Backward overlap between adjacent chunks.

Repeats the tail of the previous chunk at the start of the next one,
preferring whole sentences and falling back to whole words.

Dependencies: page_reader.core.content.text_utils
System role: Context carry-over for chunk retrieval
"""

import math

from page_reader.core.content.text_utils import CHARS_PER_TOKEN, split_sentences

SENTENCE_SLACK = 1.3
WORD_SLACK = 1.2


def _take_tail(units: list[str], target_chars: int, limit_chars: int) -> str:
    tail = ""
    for unit in reversed(units):
        candidate = f"{unit} {tail}" if tail else unit
        if len(candidate) > limit_chars:
            break
        tail = candidate
        if len(tail) >= target_chars:
            break
    return tail


def overlap_tail(previous_text: str, target_chars: int, max_chars: int) -> str:
    """
    Take the end of previous_text, about target_chars long.

    Args:
        previous_text: Body of the preceding chunk
        target_chars: Desired overlap length
        max_chars: Hard ceiling on the overlap length

    Returns:
        str: Overlap text, or "" when nothing fits
    """
    if target_chars <= 0 or max_chars <= 0 or not previous_text.strip():
        return ""

    sentence_limit = min(int(target_chars * SENTENCE_SLACK), max_chars)
    tail = _take_tail(split_sentences(previous_text), target_chars, sentence_limit)
    if tail:
        return tail

    word_limit = min(int(target_chars * WORD_SLACK), max_chars)
    return _take_tail(previous_text.split(), target_chars, word_limit)


def apply_overlap(
    bodies: list[str],
    max_tokens: int,
    overlap_percentage: float,
) -> list[tuple[str, int]]:
    """
    Prefix every chunk after the first with the tail of its predecessor.

    The overlap is sized to overlap_percentage of the current chunk's
    tokens and never exceeds overlap_percentage of max_tokens, nor pushes
    the chunk past 1.2 x max_tokens.

    Args:
        bodies: Chunk texts without overlap, in order
        max_tokens: Configured chunk size
        overlap_percentage: Overlap as a percentage (0-100)

    Returns:
        list[tuple[str, int]]: (final text, overlap tokens) per chunk
    """
    results: list[tuple[str, int]] = [(body, 0) for body in bodies]
    if overlap_percentage <= 0 or len(bodies) < 2:
        return results

    cap_tokens = math.ceil(max_tokens * overlap_percentage / 100)
    hard_limit_chars = math.ceil(max_tokens * 1.2) * CHARS_PER_TOKEN

    for index in range(1, len(bodies)):
        body = bodies[index]
        body_tokens = math.ceil(len(body) / CHARS_PER_TOKEN)
        target_tokens = min(math.ceil(body_tokens * overlap_percentage / 100), cap_tokens)
        max_chars = min(cap_tokens * CHARS_PER_TOKEN, hard_limit_chars - 2 - len(body))
        tail = overlap_tail(bodies[index - 1], target_tokens * CHARS_PER_TOKEN, max_chars)
        if tail:
            results[index] = (f"{tail}\n\n{body}", math.ceil(len(tail) / CHARS_PER_TOKEN))
    return results
