"""
OpenAI-compatible HTTP embedding provider.

Posts batches of texts to `{server_url}/v1/embeddings` and returns the
vectors in input order. Server errors are retried once with jitter.

Dependencies: httpx, tenacity
System role: Default embedding backend
"""

import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_random,
)

from page_reader.core.exceptions import EmbeddingServiceError, NetworkTimeoutError
from page_reader.core.vector.embedding_provider import EmbeddingProvider, require_setting

logger = logging.getLogger(__name__)

MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 32


def _is_server_error(exc: BaseException) -> bool:
    return (
        isinstance(exc, EmbeddingServiceError)
        and exc.status_code is not None
        and exc.status_code >= 500
    )


class HttpEmbeddingProvider(EmbeddingProvider):
    """Embedding provider for OpenAI-compatible `/v1/embeddings` servers."""

    def __init__(
        self,
        server_url: str,
        api_key: str,
        model_name: str,
        batch_size: int = 8,
        timeout_ms: int = 30000,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize HTTP embedding provider.

        Args:
            server_url: Base URL of the embedding server
            api_key: Bearer token
            model_name: Model sent with every request
            batch_size: Texts per request, clamped to 1-32
            timeout_ms: Per-request timeout
            client: Optional preconfigured client (not closed by close())

        Raises:
            ValidationError: server_url, api_key or model_name missing
        """
        base_url = require_setting(server_url, "server_url").rstrip("/")
        if not base_url.endswith("/v1"):
            base_url = f"{base_url}/v1"
        self._endpoint = f"{base_url}/embeddings"
        self._api_key = require_setting(api_key, "server_api_key")
        self._model_name = require_setting(model_name, "model_name")
        self.batch_size = min(max(batch_size, MIN_BATCH_SIZE), MAX_BATCH_SIZE)
        self._timeout_ms = timeout_ms
        self._dimension: int | None = None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_ms / 1000)
        self._closed = False

    def get_dimension(self) -> int | None:
        return self._dimension

    def get_model_name(self) -> str:
        return self._model_name

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts in batches.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per text, in input order

        Raises:
            EmbeddingServiceError: Non-2xx response, malformed payload or
                a vector whose dimension differs from earlier ones
            NetworkTimeoutError: Request timed out or connection failed
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            vectors.extend(await self._post_batch(batch))
        return vectors

    @retry(
        retry=retry_if_exception(_is_server_error),
        stop=stop_after_attempt(2),
        wait=wait_random(min=0.5, max=1.5),
        before_sleep=lambda retry_state: logger.warning(
            f"{__name__}:_post_batch - Server error, retry {retry_state.attempt_number}/1"
        ),
        reraise=True,
    )
    async def _post_batch(self, batch: list[str]) -> list[list[float]]:
        """POST one batch and return its vectors ordered by index."""
        try:
            response = await self._client.post(
                self._endpoint,
                json={"model": self._model_name, "input": batch},
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout_ms / 1000,
            )
        except httpx.TimeoutException as e:
            raise NetworkTimeoutError(
                f"Embedding request timed out: {e}", timeout_ms=self._timeout_ms
            ) from e
        except httpx.TransportError as e:
            raise NetworkTimeoutError(f"Embedding request failed: {e}") from e

        if response.status_code >= 400:
            raise EmbeddingServiceError(
                f"Embedding request failed with status {response.status_code}",
                status_code=response.status_code,
                details={"body": response.text[:200]},
            )

        try:
            data = response.json()["data"]
            ordered = sorted(data, key=lambda entry: entry.get("index", 0))
            vectors = [[float(value) for value in entry["embedding"]] for entry in ordered]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise EmbeddingServiceError(f"Malformed embedding response: {e}") from e

        if len(vectors) != len(batch):
            raise EmbeddingServiceError(
                f"Expected {len(batch)} embeddings, received {len(vectors)}"
            )
        for vector in vectors:
            self._check_dimension(vector)
        return vectors

    def _check_dimension(self, vector: list[float]) -> None:
        if self._dimension is None:
            self._dimension = len(vector)
            logger.info(
                f"{__name__}:_check_dimension - Detected embedding dimension {self._dimension} "
                f"for model {self._model_name}"
            )
        elif len(vector) != self._dimension:
            raise EmbeddingServiceError(
                f"Embedding dimension mismatch: expected {self._dimension}, got {len(vector)}",
                details={"model": self._model_name},
            )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            await self._client.aclose()
