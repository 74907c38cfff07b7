"""
Exception hierarchy for the page reader.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from enum import Enum
from typing import Any


class PageReaderException(Exception):
    """Base exception for all page reader errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class SearchErrorType(str, Enum):
    """Failure classes used to report similarity search errors."""

    VALIDATION = "validation"
    NETWORK = "network"
    EMBEDDING = "embedding"
    DATABASE = "database"
    RATE_LIMIT = "rate_limit"
    UNKNOWN = "unknown"


class SimilaritySearchError(PageReaderException):
    """Base exception for failures along the embed/store/search path."""

    def __init__(
        self,
        message: str,
        error_type: SearchErrorType = SearchErrorType.UNKNOWN,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize similarity search error.

        Args:
            message: Error message
            error_type: Classified failure type
            retryable: Whether repeating the call may succeed
            details: Additional context
        """
        self.error_type = error_type
        self.retryable = retryable
        super().__init__(message, details)


class ValidationError(SimilaritySearchError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, SearchErrorType.VALIDATION, False, details)


class NetworkTimeoutError(SimilaritySearchError):
    """Raised when a network call times out or the connection drops."""

    def __init__(
        self,
        message: str,
        timeout_ms: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize network timeout error.

        Args:
            message: Error message
            timeout_ms: Timeout that elapsed, if known
            details: Additional context
        """
        details = details or {}
        if timeout_ms is not None:
            details["timeout_ms"] = timeout_ms
        self.timeout_ms = timeout_ms
        super().__init__(message, SearchErrorType.NETWORK, True, details)


class EmbeddingServiceError(SimilaritySearchError):
    """Raised when the embedding service rejects or fails a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize embedding service error.

        Retryable for 429 and 5xx responses, or when no status is known.

        Args:
            message: Error message
            status_code: HTTP status returned by the service
            details: Additional context
        """
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        retryable = status_code is None or status_code == 429 or status_code >= 500
        super().__init__(message, SearchErrorType.EMBEDDING, retryable, details)


class DatabaseConnectionError(SimilaritySearchError):
    """Raised when the vector store cannot be reached or a query fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize database connection error.

        Args:
            message: Error message
            operation: Store operation that failed
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, SearchErrorType.DATABASE, True, details)


class RateLimitError(SimilaritySearchError):
    """Raised when a call is rejected by the rate limiter or circuit breaker."""

    def __init__(
        self,
        message: str,
        retry_after_ms: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize rate limit error.

        Args:
            message: Error message
            retry_after_ms: Suggested wait before trying again
            details: Additional context
        """
        details = details or {}
        if retry_after_ms is not None:
            details["retry_after_ms"] = retry_after_ms
        self.retry_after_ms = retry_after_ms
        super().__init__(message, SearchErrorType.RATE_LIMIT, True, details)
