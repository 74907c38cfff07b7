"""
Error classification for similarity search.

Maps arbitrary exceptions from the embedding service, vector store and
rate limiter onto the search error taxonomy so failures can be logged
and retried consistently.

Dependencies: httpx, sqlalchemy, page_reader.core.exceptions
System role: Failure taxonomy for search observability
"""

import asyncio
import re

import httpx
from sqlalchemy.exc import SQLAlchemyError

from page_reader.core.exceptions import (
    DatabaseConnectionError,
    EmbeddingServiceError,
    NetworkTimeoutError,
    RateLimitError,
    SimilaritySearchError,
    ValidationError,
)

_STATUS_RE = re.compile(r"status\s*(?:code\s*)?:?\s*(\d{3})", re.IGNORECASE)
_RATE_LIMIT_RE = re.compile(r"\brate[\s_-]?limit|too many requests|\b429\b", re.IGNORECASE)


def classify_error(exc: BaseException, context: str | None = None) -> SimilaritySearchError:
    """
    Classify an exception into the search error taxonomy.

    Already classified errors are returned unchanged.

    Args:
        exc: Exception raised along the search path
        context: Optional context (usually the page URL) kept in details

    Returns:
        SimilaritySearchError: Classified error; `__cause__` is set to exc
    """
    if isinstance(exc, SimilaritySearchError):
        return exc

    details = {"context": context} if context else {}
    message = str(exc) or type(exc).__name__
    lowered = message.lower()

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        classified: SimilaritySearchError = NetworkTimeoutError(
            f"Request timed out: {message}", details=details
        )
    elif isinstance(exc, httpx.HTTPStatusError):
        classified = EmbeddingServiceError(
            f"Embedding service error: {message}",
            status_code=exc.response.status_code,
            details=details,
        )
    elif isinstance(exc, (httpx.TransportError, ConnectionError)):
        classified = NetworkTimeoutError(f"Network error: {message}", details=details)
    elif isinstance(exc, SQLAlchemyError):
        classified = DatabaseConnectionError(f"Database error: {message}", details=details)
    elif isinstance(exc, ValueError):
        classified = ValidationError(message, details=details)
    elif "timeout" in lowered or "timed out" in lowered or "econnreset" in lowered:
        classified = NetworkTimeoutError(f"Network error: {message}", details=details)
    elif _STATUS_RE.search(message):
        status = int(_STATUS_RE.search(message).group(1))
        classified = EmbeddingServiceError(
            f"Embedding service error: {message}", status_code=status, details=details
        )
    elif "database" in lowered or "connection" in lowered:
        classified = DatabaseConnectionError(f"Database error: {message}", details=details)
    elif _RATE_LIMIT_RE.search(message):
        classified = RateLimitError(f"Rate limited: {message}", details=details)
    else:
        classified = SimilaritySearchError(f"Similarity search failed: {message}", details=details)

    classified.__cause__ = exc
    return classified
