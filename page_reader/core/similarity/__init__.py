"""Similarity search orchestration and its protective rate limiter."""

from page_reader.core.similarity.error_classifier import classify_error
from page_reader.core.similarity.rate_limiter import (
    CircuitState,
    RateLimiter,
    RateLimiterConfig,
    RateLimitResult,
)
from page_reader.core.similarity.search_manager import SimilaritySearchManager

__all__ = [
    "CircuitState",
    "RateLimitResult",
    "RateLimiter",
    "RateLimiterConfig",
    "SimilaritySearchManager",
    "classify_error",
]
