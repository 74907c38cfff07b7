"""
Similarity search manager.

Coordinates the embedding provider, the vector store, the rate limiter
and the consolidator: stores freshly chunked pages with their embeddings
and answers single and multi-query searches. Search failures are
classified and logged, then reported as empty results; storage failures
propagate.

Dependencies: asyncio, page_reader.core, page_reader.boundary.vdb, page_reader.configs
System role: Orchestrator of the embed -> store -> query -> consolidate flow
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from page_reader.boundary.vdb.vector_schemas import ChunkRow, join_section_path
from page_reader.boundary.vdb.vector_store import VectorStore
from page_reader.boundary.vdb.vector_store_factory import create_vector_store
from page_reader.configs.consolidation import ConsolidationSettings
from page_reader.configs.settings import Settings, get_settings
from page_reader.configs.similarity import SimilaritySettings
from page_reader.core.content.consolidator import ChunkConsolidator
from page_reader.core.exceptions import (
    EmbeddingServiceError,
    NetworkTimeoutError,
    ValidationError,
)
from page_reader.core.similarity.error_classifier import classify_error
from page_reader.core.similarity.rate_limiter import RateLimiter, RateLimiterConfig
from page_reader.core.vector.embedding_provider import (
    EmbeddingProvider,
    create_embedding_provider,
)
from page_reader.models.chunk import ContentChunk
from page_reader.models.consolidation import ConsolidatableChunk, ConsolidatedChunk
from page_reader.models.search import SearchOptions
from page_reader.observability.log_utils import log_exception_with_context, log_timing

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 10


class SimilaritySearchManager:
    """
    Orchestrates embedding, vector search and consolidation for one store.

    Use `create()` to build an instance from settings; it returns None
    instead of raising so callers can run without semantic search.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        similarity_settings: SimilaritySettings | None = None,
        consolidation_settings: ConsolidationSettings | None = None,
        rate_limiter: RateLimiter | None = None,
        owns_vector_store: bool = False,
    ) -> None:
        """
        Initialize search manager.

        Args:
            embedding_provider: Embedding backend
            vector_store: Chunk store with similarity search
            similarity_settings: Threshold, concurrency and timeouts
            consolidation_settings: Consolidator thresholds
            rate_limiter: Optional guard around embedding calls
            owns_vector_store: Close the store in close()
        """
        self._provider = embedding_provider
        self._store = vector_store
        self._settings = similarity_settings or SimilaritySettings()
        self._consolidator = ChunkConsolidator(consolidation_settings)
        self._rate_limiter = rate_limiter
        self._owns_store = owns_vector_store
        self._closed = False

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        vector_store: VectorStore | None = None,
    ) -> "SimilaritySearchManager | None":
        """
        Build a manager from settings, or None if any dependency fails.

        Args:
            settings: Application settings (cached settings when None)
            embedding_provider: Use this provider instead of building one
            vector_store: Use this store instead of building one

        Returns:
            SimilaritySearchManager | None: Ready manager, or None when the
                embedding provider or store cannot be set up
        """
        settings = settings or get_settings()
        provider = embedding_provider
        try:
            provider = provider or create_embedding_provider(settings.embedding)
            store = vector_store or await create_vector_store(settings.vector_store)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:create - Semantic search unavailable",
                e,
                level=logging.WARNING,
            )
            if provider is not None and embedding_provider is None:
                await provider.close()
            return None

        rate_limiter = None
        if settings.similarity.rate_limit_enabled:
            rate_limiter = RateLimiter(RateLimiterConfig.from_settings(settings.similarity))

        logger.info(
            f"{__name__}:create - Search manager ready "
            f"(model={provider.get_model_name()}, threshold={settings.similarity.threshold})"
        )
        return cls(
            provider,
            store,
            similarity_settings=settings.similarity,
            consolidation_settings=settings.consolidation,
            rate_limiter=rate_limiter,
            owns_vector_store=vector_store is None,
        )

    @property
    def vector_store(self) -> VectorStore:
        return self._store

    @property
    def rate_limiter(self) -> RateLimiter | None:
        return self._rate_limiter

    async def _with_timeout(self, awaitable: Awaitable[T], timeout_ms: int, operation: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise NetworkTimeoutError(
                f"{operation} timed out after {timeout_ms}ms",
                timeout_ms=timeout_ms,
                details={"operation": operation},
            ) from e

    async def _embed(
        self,
        texts: list[str],
        timeout_ms: int,
        use_rate_limiter: bool = True,
    ) -> list[list[float]]:
        """Embed texts under a fresh timeout per attempt, rate limited when configured."""

        async def attempt(batch: list[str]) -> list[list[float]]:
            return await self._with_timeout(self._provider.embed(batch), timeout_ms, "embed")

        if self._rate_limiter is not None and use_rate_limiter:
            result = await self._rate_limiter.process_with_rate_limit(texts, attempt)
            vectors = result.value
        else:
            vectors = await attempt(texts)

        if len(vectors) != len(texts):
            raise EmbeddingServiceError(
                f"Expected {len(texts)} embeddings, received {len(vectors)}"
            )
        return vectors

    async def search_similar(
        self,
        url: str,
        query: str,
        max_results: int,
        options: SearchOptions | None = None,
    ) -> list[ConsolidatedChunk]:
        """
        Find the chunks of url most relevant to query.

        Embeds the query, searches the store, drops results below the
        similarity threshold and consolidates the rest. Never raises:
        failures are classified, logged and reported as [].

        Args:
            url: Page URL to search within
            query: Query text
            max_results: Maximum chunks fetched from the store
            options: Per-call overrides

        Returns:
            list[ConsolidatedChunk]: Consolidated matches, best first; empty
                when nothing is confidently relevant or the search failed
        """
        options = options or SearchOptions()
        threshold = options.threshold if options.threshold is not None else self._settings.threshold
        timeout_ms = options.timeout_ms or self._settings.request_timeout_ms

        try:
            if not query or not query.strip():
                raise ValidationError("Query must not be empty", field="query")
            if max_results < 1:
                raise ValidationError("max_results must be at least 1", field="max_results")

            async with log_timing(logger, f"{__name__}:search_similar", url=url):
                vectors = await self._embed([query.strip()], timeout_ms, options.use_rate_limiter)
                rows = await self._with_timeout(
                    self._store.similarity_search(url, vectors[0], max_results),
                    timeout_ms,
                    "similarity_search",
                )

            candidates = [
                ConsolidatableChunk(
                    id=row.id,
                    text=row.text,
                    score=row.score,
                    section_path=row.section_path,
                )
                for row in rows
                if row.score >= threshold
            ]
            results = self._consolidator.consolidate(candidates)
            logger.info(
                f"{__name__}:search_similar - {len(rows)} hits, {len(candidates)} above "
                f"{threshold}, {len(results)} after consolidation"
            )
            return results

        except Exception as e:
            error = classify_error(e, url)
            logger.warning(
                f"{__name__}:search_similar - {error.error_type.value} error "
                f"(retryable={error.retryable}): {error.message}",
                extra={"url": url, "error_type": error.error_type.value},
            )
            return []

    async def search_multiple(
        self,
        queries: list[str],
        url: str,
        max_results: int,
        options: SearchOptions | None = None,
    ) -> dict[str, list[ConsolidatedChunk]]:
        """
        Run several searches in sequential batches of parallel queries.

        Args:
            queries: Query texts
            url: Page URL to search within
            max_results: Maximum chunks per query
            options: Per-call overrides; concurrency is clamped to 1-10

        Returns:
            dict[str, list[ConsolidatedChunk]]: Results keyed by query, in
                input order; a failed query maps to []
        """
        options = options or SearchOptions()
        concurrency = options.concurrency or self._settings.concurrency
        concurrency = min(max(concurrency, MIN_CONCURRENCY), MAX_CONCURRENCY)

        results: dict[str, list[ConsolidatedChunk]] = {}
        for start in range(0, len(queries), concurrency):
            batch = queries[start : start + concurrency]
            outcomes = await asyncio.gather(
                *(self.search_similar(url, query, max_results, options) for query in batch),
                return_exceptions=True,
            )
            for query, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.warning(
                        f"{__name__}:search_multiple - Query failed: {type(outcome).__name__}"
                    )
                    outcome = []
                results[query] = outcome

        logger.info(
            f"{__name__}:search_multiple - {len(queries)} queries in batches of {concurrency}"
        )
        return results

    async def store_with_embeddings(self, url: str, chunks: list[ContentChunk]) -> None:
        """
        Embed chunks and persist them with their vectors.

        Args:
            url: Page URL the chunks belong to
            chunks: Chunks in document order

        Raises:
            SimilaritySearchError: Embedding or storage failed
        """
        if not chunks:
            return

        timeout_ms = self._settings.request_timeout_ms
        batch_size = max(1, self._provider.batch_size)
        embeddings: list[list[float]] = []
        async with log_timing(
            logger, f"{__name__}:store_with_embeddings", level=logging.INFO, url=url
        ):
            for start in range(0, len(chunks), batch_size):
                batch = [chunk.text for chunk in chunks[start : start + batch_size]]
                embeddings.extend(await self._embed(batch, timeout_ms))

            rows = [
                ChunkRow(
                    id=chunk.id,
                    url=url,
                    section_path=join_section_path(chunk.section_path),
                    text=chunk.text,
                    tokens=chunk.tokens,
                    embedding=embedding,
                    chunk_index=index,
                )
                for index, (chunk, embedding) in enumerate(zip(chunks, embeddings))
            ]
            await self._with_timeout(self._store.upsert_chunks(rows), timeout_ms, "upsert_chunks")

        logger.info(f"{__name__}:store_with_embeddings - Stored {len(rows)} chunks for {url}")

    async def close(self) -> None:
        """Release provider and owned store resources. Never raises."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._provider.close()
        except Exception as e:
            logger.warning(f"{__name__}:close - Failed to close embedding provider: {e}")
        if self._owns_store:
            try:
                await self._store.close()
            except Exception as e:
                logger.warning(f"{__name__}:close - Failed to close vector store: {e}")
