"""
Page reader service.

Orchestrates the read flow for one page: chunk the extracted content,
store it with embeddings, record crawl metadata, then answer one or more
queries with consolidated chunks. Without semantic search the service
degrades to keyword matching and says so in the response note.

Dependencies: page_reader.core, page_reader.boundary.vdb, page_reader.models
System role: Caller-facing read pipeline
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from page_reader.boundary.vdb.vector_schemas import (
    ChunkRow,
    DocumentRow,
    StoredChunk,
    join_section_path,
    split_section_path,
)
from page_reader.boundary.vdb.vector_store import VectorStore
from page_reader.boundary.vdb.vector_store_factory import create_vector_store
from page_reader.configs.chunking import ChunkingSettings
from page_reader.configs.settings import Settings, get_settings
from page_reader.core.content.chunker import SemanticChunker
from page_reader.core.content.text_utils import sha256_hex
from page_reader.core.exceptions import ValidationError
from page_reader.core.similarity.search_manager import SimilaritySearchManager
from page_reader.models.chunk import ContentChunk
from page_reader.models.extraction import ExtractionResult
from page_reader.models.search import (
    QueryResult,
    ReadRequest,
    ReadResponse,
    RelevantChunk,
    SearchOptions,
)
from page_reader.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from page_reader.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

DEGRADED_NOTE = "Embedding service unavailable; returning content without semantic search"
KEYWORD_MATCH_SCORE = 0.5


class ContentExtractor(Protocol):
    """Turns fetched HTML into structured content."""

    async def extract(self, html: str, url: str) -> ExtractionResult: ...


def _keyword_matches(
    chunks: list[StoredChunk],
    query: str,
    max_results: int,
) -> list[RelevantChunk]:
    terms = [term for term in query.lower().split() if term]
    matches = [chunk for chunk in chunks if any(term in chunk.text.lower() for term in terms)]
    return [
        RelevantChunk(
            id=chunk.id,
            text=chunk.text,
            score=KEYWORD_MATCH_SCORE,
            section_path=split_section_path(chunk.section_path),
        )
        for chunk in matches[:max_results]
    ]


class PageReaderService:
    """
    Read pipeline over a vector store and an optional search manager.

    Without a search manager, or for pages stored without embeddings, the
    service runs in degraded mode: content is still chunked, stored and
    listed, but queries use keyword matching.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        search_manager: SimilaritySearchManager | None = None,
        chunker: SemanticChunker | None = None,
        extractor: ContentExtractor | None = None,
    ) -> None:
        """
        Initialize page reader service.

        Args:
            vector_store: Store holding chunks and page metadata
            search_manager: Semantic search, None to run degraded
            chunker: Semantic chunker (default settings when None)
            extractor: HTML extractor used by read_html()
        """
        self.vector_store = vector_store
        self.search_manager = search_manager
        self.chunker = chunker or SemanticChunker(ChunkingSettings())
        self.extractor = extractor

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        extractor: ContentExtractor | None = None,
    ) -> "PageReaderService":
        """
        Build the service from settings.

        Semantic search is optional: when it is disabled or its embedding
        provider cannot be set up, the service still works in degraded mode.

        Args:
            settings: Application settings (cached settings when None)
            extractor: HTML extractor used by read_html()

        Returns:
            PageReaderService: Ready service

        Raises:
            DatabaseConnectionError: The vector store cannot be initialized
        """
        settings = settings or get_settings()
        search_manager = None
        if settings.semantic_search_enabled:
            search_manager = await SimilaritySearchManager.create(settings)

        if search_manager is not None:
            vector_store = search_manager.vector_store
        else:
            logger.warning(f"{__name__}:create - Running without semantic search")
            vector_store = await create_vector_store(settings.vector_store)

        return cls(
            vector_store,
            search_manager,
            chunker=SemanticChunker(settings.chunking),
            extractor=extractor,
        )

    async def close(self) -> None:
        """Release the search manager, or the store when running degraded."""
        if self.search_manager is not None:
            await self.search_manager.close()
        else:
            await self.vector_store.close()

    async def index_page(
        self,
        url: str,
        extraction: ExtractionResult,
        max_tokens: int | None = None,
        overlap_percentage: float | None = None,
    ) -> tuple[list[ContentChunk], str | None]:
        """
        Chunk a page, store it with embeddings and record its metadata.

        Embedding failures do not fail indexing: the chunks are stored
        without vectors, the document is marked as not embedded, and the
        returned note says semantic search is unavailable.

        Args:
            url: Page URL
            extraction: Extracted page content
            max_tokens: Chunk size override
            overlap_percentage: Overlap override

        Returns:
            tuple: (chunks, degradation note or None)

        Raises:
            DatabaseConnectionError: Chunks or page metadata could not be stored
        """
        chunks = self.chunker.chunk(extraction, url, max_tokens, overlap_percentage)
        embedded = False

        if self.search_manager is not None:
            try:
                await self.search_manager.store_with_embeddings(url, chunks)
                embedded = True
            except Exception as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:index_page - Embedding failed, continuing without semantic search",
                    e,
                    level=logging.WARNING,
                    url=url,
                )

        if not embedded:
            await self.vector_store.upsert_chunks(
                [
                    ChunkRow(
                        id=chunk.id,
                        url=url,
                        section_path=join_section_path(chunk.section_path),
                        text=chunk.text,
                        tokens=chunk.tokens,
                        embedding=[],
                        chunk_index=index,
                    )
                    for index, chunk in enumerate(chunks)
                ]
            )

        await self.vector_store.upsert_document(
            DocumentRow(
                url=url,
                title=extraction.title,
                last_crawled=datetime.now(timezone.utc),
                content_hash=sha256_hex(extraction.text_content),
                embedded=embedded,
            )
        )
        logger.info(
            f"{__name__}:index_page - Indexed {len(chunks)} chunks for {url} (embedded={embedded})"
        )
        return chunks, None if embedded else DEGRADED_NOTE

    async def read(
        self,
        request: ReadRequest,
        extraction: ExtractionResult | None = None,
    ) -> ReadResponse:
        """
        Answer a read request, indexing extraction first when given.

        An empty query (or only blank queries) lists every stored chunk of
        the page in storage order without scores. Pages stored without
        embeddings are answered by keyword matching.

        Args:
            request: URL, queries and result limit
            extraction: Freshly extracted content to index before querying

        Returns:
            ReadResponse: Per-query results, page title and any degradation note
        """
        owns_correlation_id = not get_correlation_id()
        if owns_correlation_id:
            set_correlation_id()
        try:
            return await self._read(request, extraction)
        finally:
            if owns_correlation_id:
                clear_correlation_id()

    async def _read(
        self,
        request: ReadRequest,
        extraction: ExtractionResult | None,
    ) -> ReadResponse:
        url = request.url
        notes: list[str] = []
        if extraction is not None:
            if extraction.note:
                notes.append(extraction.note)
            _, index_note = await self.index_page(url, extraction)
            if index_note:
                notes.append(index_note)

        document = await self.vector_store.get_document(url)
        degraded = self.search_manager is None or (document is not None and not document.embedded)
        if degraded:
            notes.append(DEGRADED_NOTE)

        queries = request.normalized_queries()
        if not queries:
            chunks = await self.vector_store.get_chunks(url)
            results = [
                QueryResult(
                    query="",
                    results=[
                        RelevantChunk(
                            id=chunk.id,
                            text=chunk.text,
                            score=None,
                            section_path=split_section_path(chunk.section_path),
                        )
                        for chunk in chunks
                    ],
                )
            ]
        elif degraded:
            chunks = await self.vector_store.get_chunks(url)
            results = [
                QueryResult(query=query, results=_keyword_matches(chunks, query, request.max_results))
                for query in queries
            ]
        else:
            found = await self.search_manager.search_multiple(
                queries, url, request.max_results, SearchOptions()
            )
            results = [
                QueryResult(
                    query=query,
                    results=[
                        RelevantChunk(
                            id=chunk.id,
                            text=chunk.text,
                            score=chunk.score,
                            section_path=split_section_path(chunk.section_path),
                        )
                        for chunk in found.get(query, [])[: request.max_results]
                    ],
                )
                for query in queries
            ]

        return ReadResponse(
            url=url,
            title=document.title if document else (extraction.title if extraction else None),
            last_crawled=document.last_crawled if document else None,
            results=results,
            note="; ".join(dict.fromkeys(notes)) or None,
        )

    async def read_html(self, request: ReadRequest, html: str) -> ReadResponse:
        """
        Extract html with the configured extractor, then read.

        Raises:
            ValidationError: No extractor configured
        """
        if self.extractor is None:
            raise ValidationError("No content extractor configured", field="extractor")
        extraction = await self.extractor.extract(html, request.url)
        return await self.read(request, extraction)
