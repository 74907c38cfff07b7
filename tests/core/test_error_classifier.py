"""Tests for search error classification."""

import asyncio

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from page_reader.core.exceptions import (
    DatabaseConnectionError,
    EmbeddingServiceError,
    NetworkTimeoutError,
    RateLimitError,
    SearchErrorType,
    SimilaritySearchError,
    ValidationError,
)
from page_reader.core.similarity.error_classifier import classify_error


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://embed.local/v1/embeddings")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestClassifyError:
    """Exception type and message based classification."""

    def test_classified_error_passes_through(self) -> None:
        """Already classified errors are returned as is."""
        error = RateLimitError("slow down", retry_after_ms=100)

        assert classify_error(error) is error

    @pytest.mark.parametrize(
        "exc",
        [asyncio.TimeoutError(), TimeoutError("late"), httpx.ConnectTimeout("connect")],
    )
    def test_timeouts_are_network_errors(self, exc: Exception) -> None:
        """Timeouts of every flavour are retryable network errors."""
        classified = classify_error(exc, "https://example.com")

        assert isinstance(classified, NetworkTimeoutError)
        assert classified.retryable
        assert classified.details["context"] == "https://example.com"
        assert classified.__cause__ is exc

    def test_http_status_errors_keep_status(self) -> None:
        """Status errors become embedding errors with retryability by status."""
        server = classify_error(_status_error(502))
        client = classify_error(_status_error(401))

        assert isinstance(server, EmbeddingServiceError)
        assert server.status_code == 502
        assert server.retryable
        assert client.status_code == 401
        assert not client.retryable

    def test_connection_errors_are_network_errors(self) -> None:
        """Refused connections are network errors."""
        classified = classify_error(ConnectionRefusedError("refused"))

        assert classified.error_type == SearchErrorType.NETWORK

    def test_sqlalchemy_errors_are_database_errors(self) -> None:
        """Driver errors are database errors."""
        exc = OperationalError("SELECT 1", {}, Exception("disk I/O error"))

        assert isinstance(classify_error(exc), DatabaseConnectionError)

    def test_value_errors_are_validation_errors(self) -> None:
        """Bad input is not retryable."""
        classified = classify_error(ValueError("vector has wrong length"))

        assert isinstance(classified, ValidationError)
        assert not classified.retryable

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("socket ECONNRESET", NetworkTimeoutError),
            ("request timed out upstream", NetworkTimeoutError),
            ("embedding failed with status code 503", EmbeddingServiceError),
            ("database is locked", DatabaseConnectionError),
            ("rate limit exceeded", RateLimitError),
            ("too many requests", RateLimitError),
        ],
    )
    def test_message_heuristics(self, message: str, expected: type) -> None:
        """Untyped errors are classified from their message."""
        assert isinstance(classify_error(RuntimeError(message)), expected)

    def test_message_status_code_is_extracted(self) -> None:
        """Status codes in messages are kept."""
        classified = classify_error(RuntimeError("upstream status: 429"))

        assert isinstance(classified, EmbeddingServiceError)
        assert classified.status_code == 429
        assert classified.retryable

    def test_unknown_errors(self) -> None:
        """Anything else is an unknown, non-retryable search error."""
        classified = classify_error(KeyError("missing"))

        assert type(classified) is SimilaritySearchError
        assert classified.error_type == SearchErrorType.UNKNOWN
        assert not classified.retryable
