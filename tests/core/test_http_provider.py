"""Tests for the OpenAI-compatible HTTP embedding provider and provider factory."""

import json

import httpx
import pytest

from page_reader.configs.embedding import EmbeddingSettings
from page_reader.core.exceptions import (
    EmbeddingServiceError,
    NetworkTimeoutError,
    ValidationError,
)
from page_reader.core.vector.embedding_provider import create_embedding_provider
from page_reader.core.vector.providers.http_provider import HttpEmbeddingProvider


def _ok_response(request: httpx.Request, dimension: int = 3) -> httpx.Response:
    inputs = json.loads(request.content)["input"]
    # Deliberately out of order; the provider must sort by index
    data = [
        {"index": i, "embedding": [float(i)] + [1.0] * (dimension - 1)}
        for i in reversed(range(len(inputs)))
    ]
    return httpx.Response(200, json={"data": data})


def _provider(handler, batch_size: int = 8) -> HttpEmbeddingProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpEmbeddingProvider(
        server_url="http://embed.local",
        api_key="secret",
        model_name="test-model",
        batch_size=batch_size,
        client=client,
    )


class TestHttpEmbeddingProvider:
    """Request shape, batching, ordering and error mapping."""

    @pytest.mark.asyncio
    async def test_batches_and_orders_by_index(self) -> None:
        """Should send batch_size texts per request and keep input order."""
        # Arrange
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return _ok_response(request)

        provider = _provider(handler, batch_size=2)

        # Act
        vectors = await provider.embed(["a", "b", "c"])

        # Assert
        assert len(requests) == 2
        assert str(requests[0].url) == "http://embed.local/v1/embeddings"
        assert requests[0].headers["Authorization"] == "Bearer secret"
        assert json.loads(requests[0].content) == {"model": "test-model", "input": ["a", "b"]}
        assert [vector[0] for vector in vectors] == [0.0, 1.0, 0.0]
        assert provider.get_dimension() == 3
        assert provider.get_model_name() == "test-model"

    @pytest.mark.asyncio
    async def test_retries_once_on_server_error(self) -> None:
        """A 503 followed by success should return vectors after one retry."""
        # Arrange
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 1:
                return httpx.Response(503, text="busy")
            return _ok_response(request)

        provider = _provider(handler)

        # Act
        vectors = await provider.embed(["hello"])

        # Assert
        assert calls["count"] == 2
        assert len(vectors) == 1

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self) -> None:
        """A 400 should raise immediately with its status."""
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(400, text="bad request")

        provider = _provider(handler)

        with pytest.raises(EmbeddingServiceError) as exc_info:
            await provider.embed(["hello"])

        assert calls["count"] == 1
        assert exc_info.value.status_code == 400
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_dimension_mismatch_raises(self) -> None:
        """A vector with a different dimension than earlier ones is an error."""
        # Arrange
        dimensions = iter([3, 4])

        def handler(request: httpx.Request) -> httpx.Response:
            return _ok_response(request, dimension=next(dimensions))

        provider = _provider(handler, batch_size=1)

        # Act / Assert
        with pytest.raises(EmbeddingServiceError, match="dimension mismatch"):
            await provider.embed(["first", "second"])

    @pytest.mark.asyncio
    async def test_timeout_maps_to_network_error(self) -> None:
        """httpx timeouts surface as NetworkTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        provider = _provider(handler)

        with pytest.raises(NetworkTimeoutError):
            await provider.embed(["hello"])

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_request(self) -> None:
        """No texts, no requests."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("unexpected request")

        assert await _provider(handler).embed([]) == []

    def test_batch_size_is_clamped(self) -> None:
        """Batch size outside 1-32 is clamped."""
        provider = _provider(lambda request: _ok_response(request), batch_size=100)

        assert provider.batch_size == 32

    def test_missing_configuration_raises(self) -> None:
        """server_url, api key and model are required."""
        with pytest.raises(ValidationError) as exc_info:
            HttpEmbeddingProvider(server_url="", api_key="k", model_name="m")

        assert exc_info.value.details["field"] == "server_url"


class TestCreateEmbeddingProvider:
    """Provider factory."""

    @pytest.mark.asyncio
    async def test_builds_http_provider(self) -> None:
        """Should build an HTTP provider from settings."""
        settings = EmbeddingSettings(
            provider="http",
            server_url="http://embed.local/v1/",
            server_api_key="key",
            model_name="model",
            batch_size=4,
        )

        provider = create_embedding_provider(settings)

        assert isinstance(provider, HttpEmbeddingProvider)
        assert provider.batch_size == 4
        await provider.close()
        await provider.close()

    def test_missing_settings_raise_validation_error(self) -> None:
        """Unconfigured HTTP provider cannot be built."""
        with pytest.raises(ValidationError):
            create_embedding_provider(EmbeddingSettings(provider="http"))
