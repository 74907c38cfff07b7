"""
Similarity search configuration settings.

Relevance threshold, query concurrency, per-call timeouts and the
rate limiter / circuit breaker knobs guarding the embedding service.

Dependencies: pydantic, pydantic_settings
System role: Search orchestration configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SimilaritySettings(BaseSettings):
    """Similarity search and rate limiting configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SIMILARITY_",
        case_sensitive=False,
        extra="ignore",
    )

    threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Minimum similarity score kept from vector search (0.0-1.0)",
    )
    concurrency: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Queries executed in parallel per batch",
    )
    request_timeout_ms: int = Field(
        default=20000,
        ge=1,
        description="Timeout applied to each embedding and vector store call",
    )
    default_max_results: int = Field(
        default=8,
        ge=1,
        le=50,
        description="Results returned per query when the caller does not say",
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Guard embedding calls with the token bucket and circuit breaker",
    )
    rate_limit_max_requests: int = Field(default=10, ge=1, description="Requests per window")
    rate_limit_window_ms: int = Field(default=1000, ge=1, description="Token bucket window")
    rate_limit_max_retries: int = Field(default=3, ge=0, description="Retries after a failure")
    rate_limit_retry_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Base delay for exponential backoff between retries",
    )
    circuit_breaker_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures that open the circuit",
    )
    circuit_breaker_timeout_ms: int = Field(
        default=30000,
        ge=0,
        description="Time the circuit stays open before a probe is allowed",
    )
