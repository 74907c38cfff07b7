"""
Shared test fixtures and configuration for entire test suite.

Provides: deterministic embedding provider, vector stores, sample extractions
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import hashlib
import math
import re

import pytest

from page_reader.boundary.vdb.memory_store import InMemoryVectorStore
from page_reader.boundary.vdb.sql_store import SqlVectorStore
from page_reader.configs.similarity import SimilaritySettings
from page_reader.configs.vector_store import VectorStoreSettings
from page_reader.core.vector.embedding_provider import EmbeddingProvider
from page_reader.models.extraction import ExtractionResult

_WORD_RE = re.compile(r"[a-z0-9]+")


class HashingEmbeddingProvider(EmbeddingProvider):
    """Bag-of-words embeddings: texts sharing words get similar vectors."""

    def __init__(self, dimension: int = 256, batch_size: int = 8) -> None:
        self.dimension = dimension
        self.batch_size = batch_size
        self.calls: list[list[str]] = []
        self.closed = False

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for word in _WORD_RE.findall(text.lower()):
            digest = hashlib.sha256(word.encode("utf-8")).digest()
            vector[int.from_bytes(digest[:4], "big") % self.dimension] += 1.0
        norm = math.sqrt(sum(value * value for value in vector))
        if norm == 0:
            vector[0] = 1.0
            return vector
        return [value / norm for value in vector]

    def get_dimension(self) -> int | None:
        return self.dimension

    def get_model_name(self) -> str:
        return "hashing-test"

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def embedding_provider() -> HashingEmbeddingProvider:
    """Deterministic in-process embedding provider."""
    return HashingEmbeddingProvider()


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    """Empty in-memory vector store."""
    return InMemoryVectorStore()


@pytest.fixture
async def sql_store():
    """
    SQL vector store on in-memory SQLite.

    Yields:
        SqlVectorStore: Initialized store, disposed after the test
    """
    store = SqlVectorStore(VectorStoreSettings(database_url="sqlite+aiosqlite:///:memory:"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def similarity_settings() -> SimilaritySettings:
    """Similarity settings with a permissive threshold and no rate limiting."""
    return SimilaritySettings(threshold=0.1, concurrency=2, rate_limit_enabled=False)


@pytest.fixture
def sample_extraction() -> ExtractionResult:
    """Small page with two top-level sections and a nested section."""
    markdown = (
        "# Installation\n\n"
        "Install the package with pip. The installer downloads every dependency "
        "and checks that the interpreter version is supported.\n\n"
        "```bash\npip install page-reader\n```\n\n"
        "## Configuration\n\n"
        "Configuration lives in environment variables. Each setting has a prefix "
        "that matches the component it configures.\n\n"
        "# Usage\n\n"
        "Call the reader with a URL and a query. Results come back ranked by "
        "similarity to the query.\n\n"
        "- First item of the list\n"
        "- Second item of the list\n"
    )
    return ExtractionResult(
        title="Page Reader Guide",
        text_content=markdown.replace("#", ""),
        markdown_content=markdown,
    )
