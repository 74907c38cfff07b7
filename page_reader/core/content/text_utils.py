"""
Text helpers shared by the chunker and consolidator.

Token estimation, abbreviation-aware sentence splitting, word packing
and content-addressed chunk ids.

Dependencies: hashlib, re (stdlib)
System role: Text primitives for chunking
"""

import hashlib
import math
import re

CHARS_PER_TOKEN = 4

ABBREVIATIONS: tuple[str, ...] = (
    "Mr",
    "Mrs",
    "Ms",
    "Dr",
    "Prof",
    "Sr",
    "Jr",
    "Ph.D",
    "M.D",
    "B.A",
    "M.A",
    "U.S",
    "U.K",
    "etc",
    "vs",
    "i.e",
    "e.g",
    "cf",
    "al",
)

# Private-use character standing in for an abbreviation's trailing period
_PERIOD_PLACEHOLDER = "\ue000"

_ABBREVIATION_RE = re.compile(
    r"(?<![\w.])("
    + "|".join(re.escape(a) for a in sorted(ABBREVIATIONS, key=len, reverse=True))
    + r")\.",
    re.IGNORECASE,
)
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+|(?<=[.!?][\"')\]])\s+")


def estimate_tokens(text: str) -> int:
    """
    Estimate tokens as characters / 4, rounded up.

    Args:
        text: Any text

    Returns:
        int: Estimated token count
    """
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentences without breaking on common abbreviations.

    Punctuation stays attached to its sentence.

    Args:
        text: Paragraph text

    Returns:
        list[str]: Non-empty sentences in order
    """
    protected = _ABBREVIATION_RE.sub(lambda m: m.group(1) + _PERIOD_PLACEHOLDER, text)
    sentences = []
    for part in _SENTENCE_BOUNDARY_RE.split(protected):
        part = part.replace(_PERIOD_PLACEHOLDER, ".").strip()
        if part:
            sentences.append(part)
    return sentences


def pack_words(text: str, max_chars: int) -> list[str]:
    """
    Pack whitespace-separated words into pieces of at most max_chars.

    Words longer than the limit are cut into fixed-size slices.

    Args:
        text: Text to split
        max_chars: Maximum piece length

    Returns:
        list[str]: Pieces in order
    """
    max_chars = max(1, max_chars)
    pieces: list[str] = []
    current = ""
    for word in text.split():
        if len(word) > max_chars:
            if current:
                pieces.append(current)
                current = ""
            pieces.extend(word[i : i + max_chars] for i in range(0, len(word), max_chars))
            continue
        if current and len(current) + 1 + len(word) > max_chars:
            pieces.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        pieces.append(current)
    return pieces


def pack_sentences(text: str, max_chars: int) -> list[str]:
    """
    Split text at sentence boundaries into pieces of at most max_chars.

    Sentences that alone exceed the limit fall back to word packing.

    Args:
        text: Text to split
        max_chars: Maximum piece length

    Returns:
        list[str]: Pieces in order
    """
    pieces: list[str] = []
    current = ""
    for sentence in split_sentences(text):
        if len(sentence) > max_chars:
            if current:
                pieces.append(current)
                current = ""
            pieces.extend(pack_words(sentence, max_chars))
        elif current and len(current) + 1 + len(sentence) > max_chars:
            pieces.append(current)
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence
    if current:
        pieces.append(current)
    return pieces


def sha256_hex(text: str) -> str:
    """Return the SHA-256 hex digest of UTF-8 text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def stable_chunk_id(url: str, section_path: list[str] | tuple[str, ...], text: str) -> str:
    """
    Build the content-addressed id of a chunk.

    Args:
        url: Page URL
        section_path: Enclosing heading titles
        text: Final chunk text

    Returns:
        str: SHA-256 hex of "url|path/joined|text"
    """
    return sha256_hex(f"{url}|{'/'.join(section_path)}|{text}")
