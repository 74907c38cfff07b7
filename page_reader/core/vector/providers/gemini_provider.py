"""
Google Gemini embedding provider.

Wraps GoogleGenerativeAIEmbeddings so every call uses a fixed output
dimensionality, and adapts it to the async provider interface.

Dependencies: langchain_core, langchain_google_genai, python-dotenv
System role: Alternative embedding backend
"""

import asyncio
import logging
from typing import List

from dotenv import load_dotenv
from langchain_core.embeddings import Embeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings

from page_reader.configs.embedding import EmbeddingSettings
from page_reader.core.exceptions import EmbeddingServiceError
from page_reader.core.vector.embedding_provider import EmbeddingProvider

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "models/gemini-embedding-001"


class FixedDimensionEmbeddings(GoogleGenerativeAIEmbeddings):
    """
    GoogleGenerativeAIEmbeddings with a fixed output dimensionality.

    The base class ignores output_dimensionality in the constructor, so
    it is forwarded on every embed call instead.
    """

    _output_dimensionality: int = 1024

    def __init__(
        self,
        model: str = DEFAULT_GEMINI_MODEL,
        output_dimensionality: int = 1024,
        **kwargs,
    ) -> None:
        super().__init__(model=model, **kwargs)
        self._output_dimensionality = output_dimensionality

    def embed_documents(
        self,
        texts: List[str],
        *,
        batch_size: int = 100,
        task_type: str | None = None,
        titles: List[str] | None = None,
        output_dimensionality: int | None = None,
    ) -> List[List[float]]:
        dim = output_dimensionality or self._output_dimensionality
        return super().embed_documents(
            texts,
            batch_size=batch_size,
            task_type=task_type,
            titles=titles,
            output_dimensionality=dim,
        )


class GeminiEmbeddingProvider(EmbeddingProvider):
    """Provider backed by any LangChain Embeddings, Gemini by default."""

    def __init__(
        self,
        embeddings: Embeddings,
        model_name: str,
        batch_size: int = 8,
        dimension: int | None = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            embeddings: LangChain embeddings implementation
            model_name: Model identifier reported by get_model_name()
            batch_size: Texts per embed call
            dimension: Expected dimension, detected from output when None
        """
        self._embeddings = embeddings
        self._model_name = model_name
        self.batch_size = batch_size
        self._dimension = dimension

    @classmethod
    def from_settings(cls, settings: EmbeddingSettings) -> "GeminiEmbeddingProvider":
        """Build a Gemini provider from embedding settings."""
        model = settings.model_name or DEFAULT_GEMINI_MODEL
        kwargs = {}
        if settings.server_api_key:
            kwargs["google_api_key"] = settings.server_api_key
        embeddings = FixedDimensionEmbeddings(
            model=model,
            output_dimensionality=settings.output_dimensionality,
            **kwargs,
        )
        logger.info(
            f"{__name__}:from_settings - Initialized with model={model}, "
            f"output_dimensionality={settings.output_dimensionality}"
        )
        return cls(
            embeddings,
            model_name=model,
            batch_size=settings.batch_size,
            dimension=settings.output_dimensionality,
        )

    def get_dimension(self) -> int | None:
        return self._dimension

    def get_model_name(self) -> str:
        return self._model_name

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts in batches on a worker thread.

        Raises:
            EmbeddingServiceError: A vector has an unexpected dimension
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            vectors.extend(await asyncio.to_thread(self._embeddings.embed_documents, batch))

        for vector in vectors:
            if self._dimension is None:
                self._dimension = len(vector)
            elif len(vector) != self._dimension:
                raise EmbeddingServiceError(
                    f"Embedding dimension mismatch: expected {self._dimension}, got {len(vector)}",
                    details={"model": self._model_name},
                )
        return vectors
