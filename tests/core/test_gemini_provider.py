"""Tests for the LangChain-backed Gemini embedding provider."""

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from page_reader.core.exceptions import EmbeddingServiceError
from page_reader.core.vector.providers.gemini_provider import GeminiEmbeddingProvider


class TestGeminiEmbeddingProvider:
    """Batching and dimension checks over a fake LangChain embeddings model."""

    @pytest.mark.asyncio
    async def test_embeds_in_batches(self) -> None:
        """Should return one vector per text and detect the dimension."""
        # Arrange
        provider = GeminiEmbeddingProvider(
            DeterministicFakeEmbedding(size=12),
            model_name="fake-model",
            batch_size=2,
        )

        # Act
        vectors = await provider.embed(["one", "two", "three"])

        # Assert
        assert len(vectors) == 3
        assert provider.get_dimension() == 12
        assert provider.get_model_name() == "fake-model"
        assert vectors[0] == (await provider.embed(["one"]))[0]

    @pytest.mark.asyncio
    async def test_unexpected_dimension_raises(self) -> None:
        """A model returning the wrong size is an embedding error."""
        provider = GeminiEmbeddingProvider(
            DeterministicFakeEmbedding(size=8),
            model_name="fake-model",
            dimension=1024,
        )

        with pytest.raises(EmbeddingServiceError, match="dimension mismatch"):
            await provider.embed(["text"])
