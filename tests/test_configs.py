"""Tests for environment-driven settings."""

import pydantic
import pytest

from page_reader.configs import (
    ChunkingSettings,
    ConsolidationSettings,
    EmbeddingSettings,
    Settings,
    SimilaritySettings,
    VectorStoreSettings,
)


class TestDefaults:
    """Out-of-the-box values."""

    def test_pipeline_defaults(self, monkeypatch) -> None:
        for name in ("CHUNKING_MAX_TOKENS", "SIMILARITY_THRESHOLD", "SIMILARITY_CONCURRENCY"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.chunking.max_tokens == 512
        assert settings.chunking.overlap_percentage == 15
        assert settings.similarity.threshold == 0.6
        assert settings.similarity.concurrency == 2
        assert settings.similarity.rate_limit_max_requests == 10
        assert settings.similarity.circuit_breaker_timeout_ms == 30000
        assert settings.consolidation.min_overlap_chars == 30

    def test_store_defaults_to_sql(self, monkeypatch) -> None:
        monkeypatch.delenv("VECTOR_STORE_STORE_TYPE", raising=False)

        assert VectorStoreSettings().store_type == "sql"


class TestEnvironment:
    """Prefixed environment overrides."""

    def test_prefixed_variables_override(self, monkeypatch) -> None:
        # Arrange
        monkeypatch.setenv("CHUNKING_MAX_TOKENS", "256")
        monkeypatch.setenv("SIMILARITY_THRESHOLD", "0.75")
        monkeypatch.setenv("EMBEDDING_PROVIDER", "gemini")
        monkeypatch.setenv("VECTOR_STORE_STORE_TYPE", "memory")

        # Act / Assert
        assert ChunkingSettings().max_tokens == 256
        assert SimilaritySettings().threshold == 0.75
        assert EmbeddingSettings().provider == "gemini"
        assert VectorStoreSettings().store_type == "memory"

    @pytest.mark.parametrize(
        ("factory", "kwargs"),
        [
            (ChunkingSettings, {"overlap_percentage": 150}),
            (SimilaritySettings, {"threshold": 1.5}),
            (SimilaritySettings, {"concurrency": 11}),
            (EmbeddingSettings, {"batch_size": 64}),
            (EmbeddingSettings, {"provider": "openai"}),
            (VectorStoreSettings, {"store_type": "redis"}),
        ],
    )
    def test_out_of_range_values_are_rejected(self, factory, kwargs) -> None:
        with pytest.raises(pydantic.ValidationError):
            factory(**kwargs)

    def test_consolidation_thresholds_configurable(self) -> None:
        settings = ConsolidationSettings(short_text_word_ratio=0.5)

        assert settings.short_text_word_ratio == 0.5
