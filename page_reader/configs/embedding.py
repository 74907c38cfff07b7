"""
Embedding provider configuration settings.

Selects the embedding backend and holds its connection parameters.

Dependencies: pydantic, pydantic_settings
System role: Embedding service configuration
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration (OpenAI-compatible HTTP or Gemini)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    provider: Literal["http", "gemini"] = Field(
        default="http",
        description="Embedding backend: 'http' for OpenAI-compatible servers, 'gemini' for Google",
    )
    server_url: str | None = Field(
        default=None,
        description="Base URL of the OpenAI-compatible embedding server",
    )
    server_api_key: str | None = Field(
        default=None,
        description="Bearer token for the embedding server (Google API key for gemini)",
    )
    model_name: str | None = Field(
        default=None,
        description="Embedding model identifier",
    )
    batch_size: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Texts per embedding request",
    )
    timeout_ms: int = Field(
        default=30000,
        ge=1,
        description="Per-request timeout in milliseconds",
    )
    output_dimensionality: int = Field(
        default=1024,
        ge=1,
        description="Fixed output dimension requested from Gemini embeddings",
    )
