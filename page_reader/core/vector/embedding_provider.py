"""
Embedding provider interface and factory.

Every backend turns a list of texts into vectors, reports its model and
dimension, and releases its resources on close.

Dependencies: page_reader.configs.embedding
System role: Narrow seam between search orchestration and embedding backends
"""

import logging
from abc import ABC, abstractmethod

from page_reader.configs.embedding import EmbeddingSettings
from page_reader.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


class EmbeddingProvider(ABC):
    """Async embedding backend."""

    batch_size: int = 8

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts, batching internally at the provider's batch size.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per text, in input order
        """

    @abstractmethod
    def get_dimension(self) -> int | None:
        """Vector dimension, or None until the first vector is seen."""

    @abstractmethod
    def get_model_name(self) -> str:
        """Model identifier."""

    async def close(self) -> None:
        """Release network resources. Safe to call more than once."""
        return None


def create_embedding_provider(settings: EmbeddingSettings | None = None) -> EmbeddingProvider:
    """
    Build the configured embedding provider.

    Args:
        settings: Embedding settings (reads environment when None)

    Returns:
        EmbeddingProvider: HTTP or Gemini provider

    Raises:
        ValidationError: Required settings are missing
    """
    settings = settings or EmbeddingSettings()

    if settings.provider == "gemini":
        from page_reader.core.vector.providers.gemini_provider import GeminiEmbeddingProvider

        logger.info(f"{__name__}:create_embedding_provider - Creating Gemini embedding provider")
        return GeminiEmbeddingProvider.from_settings(settings)

    from page_reader.core.vector.providers.http_provider import HttpEmbeddingProvider

    logger.info(
        f"{__name__}:create_embedding_provider - Creating HTTP embedding provider "
        f"for {settings.server_url}"
    )
    return HttpEmbeddingProvider(
        server_url=settings.server_url or "",
        api_key=settings.server_api_key or "",
        model_name=settings.model_name or "",
        batch_size=settings.batch_size,
        timeout_ms=settings.timeout_ms,
    )


def require_setting(value: str | None, field: str) -> str:
    """
    Return a non-blank setting or raise.

    Raises:
        ValidationError: The value is missing or blank
    """
    if not value or not value.strip():
        raise ValidationError(f"Embedding setting '{field}' is required", field=field)
    return value.strip()
