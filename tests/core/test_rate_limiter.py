"""Tests for the token bucket rate limiter and circuit breaker."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from page_reader.configs.similarity import SimilaritySettings
from page_reader.core.exceptions import RateLimitError, ValidationError
from page_reader.core.similarity.rate_limiter import (
    CircuitState,
    RateLimiter,
    RateLimiterConfig,
)


class FakeClock:
    """Manually advanced monotonic clock in seconds."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _breaker_config(**overrides) -> RateLimiterConfig:
    values = dict(
        max_requests=100,
        window_ms=1000,
        max_retries=0,
        retry_delay_ms=0,
        circuit_breaker_threshold=5,
        circuit_breaker_timeout_ms=30000,
    )
    values.update(overrides)
    return RateLimiterConfig(**values)


class TestTokenBucket:
    """Token bucket throttling."""

    @pytest.mark.asyncio
    async def test_sixth_call_waits_for_the_window(self) -> None:
        """Five calls pass immediately; the sixth waits for the window to refill."""
        # Arrange
        limiter = RateLimiter(RateLimiterConfig(max_requests=5, window_ms=1000))
        processor = AsyncMock(return_value="done")

        # Act
        first_five = [await limiter.process_with_rate_limit(i, processor) for i in range(5)]
        sixth = await limiter.process_with_rate_limit(5, processor)

        # Assert
        assert [result.delay_ms for result in first_five] == [0.0] * 5
        assert sixth.delay_ms >= 900
        assert sixth.value == "done"
        assert processor.await_count == 6

    @pytest.mark.asyncio
    async def test_full_window_restores_capacity(self) -> None:
        """After a whole window the bucket is full again."""
        # Arrange
        clock = FakeClock()
        limiter = RateLimiter(RateLimiterConfig(max_requests=3, window_ms=1000), clock=clock)
        processor = AsyncMock(return_value=None)
        for i in range(3):
            await limiter.process_with_rate_limit(i, processor)
        assert limiter.get_stats()["available_tokens"] == 0

        # Act
        clock.advance(1.0)

        # Assert
        assert limiter.get_stats()["available_tokens"] == 3

    @pytest.mark.asyncio
    async def test_partial_window_refills_proportionally(self) -> None:
        """Half a window refills half the capacity."""
        clock = FakeClock()
        limiter = RateLimiter(RateLimiterConfig(max_requests=4, window_ms=1000), clock=clock)
        processor = AsyncMock(return_value=None)
        for i in range(4):
            await limiter.process_with_rate_limit(i, processor)

        clock.advance(0.5)

        assert limiter.get_stats()["available_tokens"] == 2


class TestRetries:
    """Retry and backoff behavior."""

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self) -> None:
        """Two failures then success: two retries, 10ms + 20ms of backoff."""
        # Arrange
        limiter = RateLimiter(_breaker_config(max_retries=3, retry_delay_ms=10))
        processor = AsyncMock(side_effect=[RuntimeError("a"), RuntimeError("b"), "ok"])

        # Act
        result = await limiter.process_with_rate_limit("item", processor)

        # Assert
        assert result.value == "ok"
        assert result.retry_count == 2
        assert result.delay_ms >= 30
        assert result.item == "item"

    @pytest.mark.asyncio
    async def test_success_decrements_failures(self) -> None:
        """Each success removes one failure from the counter."""
        limiter = RateLimiter(_breaker_config(max_retries=3, retry_delay_ms=0))
        processor = AsyncMock(side_effect=[RuntimeError("a"), RuntimeError("b"), "ok"])

        await limiter.process_with_rate_limit("item", processor)

        assert limiter.get_stats()["failures"] == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_rate_limit_error(self) -> None:
        """Should raise RateLimitError chained from the last failure."""
        # Arrange
        limiter = RateLimiter(_breaker_config(max_retries=2, retry_delay_ms=0))
        processor = AsyncMock(side_effect=RuntimeError("still down"))

        # Act
        with pytest.raises(RateLimitError) as exc_info:
            await limiter.process_with_rate_limit("item", processor)

        # Assert
        assert processor.await_count == 3
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_non_retryable_errors_are_not_retried(self) -> None:
        """Validation errors propagate after a single attempt."""
        limiter = RateLimiter(_breaker_config(max_retries=3, retry_delay_ms=0))
        processor = AsyncMock(side_effect=ValidationError("bad input", field="query"))

        with pytest.raises(ValidationError):
            await limiter.process_with_rate_limit("item", processor)

        assert processor.await_count == 1


class TestCircuitBreaker:
    """CLOSED -> OPEN -> HALF_OPEN -> CLOSED transitions."""

    @pytest.mark.asyncio
    async def test_opens_after_threshold_and_recovers_after_timeout(self) -> None:
        """Five failures open the circuit; after 30s a successful probe closes it."""
        # Arrange
        clock = FakeClock()
        limiter = RateLimiter(_breaker_config(), clock=clock)
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        for _ in range(5):
            with pytest.raises(RateLimitError):
                await limiter.process_with_rate_limit("x", failing)
        assert limiter.state == CircuitState.OPEN

        # Act: rejected immediately while open
        healthy = AsyncMock(return_value="ok")
        with pytest.raises(RateLimitError) as exc_info:
            await limiter.process_with_rate_limit("x", healthy)

        # Assert
        healthy.assert_not_awaited()
        assert exc_info.value.retry_after_ms > 0

        # Act: timeout elapses, probe succeeds
        clock.advance(30.0)
        result = await limiter.process_with_rate_limit("x", healthy)

        # Assert
        assert result.value == "ok"
        assert limiter.state == CircuitState.CLOSED
        assert limiter.get_stats()["failures"] == 0
        assert limiter.get_stats()["circuit_opened_at"] is None

    @pytest.mark.asyncio
    async def test_failed_probe_reopens_circuit(self) -> None:
        """A failing half-open probe restarts the open timeout."""
        # Arrange
        clock = FakeClock()
        limiter = RateLimiter(_breaker_config(), clock=clock)
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        for _ in range(5):
            with pytest.raises(RateLimitError):
                await limiter.process_with_rate_limit("x", failing)
        clock.advance(30.0)

        # Act
        with pytest.raises(RateLimitError):
            await limiter.process_with_rate_limit("x", failing)

        # Assert
        assert limiter.state == CircuitState.OPEN
        assert limiter.get_stats()["circuit_opened_at"] == clock.now
        healthy = AsyncMock(return_value="ok")
        with pytest.raises(RateLimitError):
            await limiter.process_with_rate_limit("x", healthy)
        healthy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancelled_half_open_call_frees_slot(self) -> None:
        """A half-open call cancelled while waiting for a token frees the slot for the next call."""
        # Arrange
        clock = FakeClock()
        limiter = RateLimiter(
            _breaker_config(max_requests=1, window_ms=60000, circuit_breaker_threshold=1),
            clock=clock,
        )
        with pytest.raises(RateLimitError):
            await limiter.process_with_rate_limit("x", AsyncMock(side_effect=RuntimeError("down")))
        clock.advance(31.0)
        waiting = asyncio.create_task(
            limiter.process_with_rate_limit("x", AsyncMock(return_value="late"))
        )
        await asyncio.sleep(0.01)
        assert limiter.state == CircuitState.HALF_OPEN

        # Act
        waiting.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiting
        clock.advance(120.0)
        result = await limiter.process_with_rate_limit("x", AsyncMock(return_value="ok"))

        # Assert
        assert result.value == "ok"
        assert limiter.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_reset_closes_circuit(self) -> None:
        """reset() restores a closed circuit with a full bucket."""
        clock = FakeClock()
        limiter = RateLimiter(_breaker_config(), clock=clock)
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        for _ in range(5):
            with pytest.raises(RateLimitError):
                await limiter.process_with_rate_limit("x", failing)

        await limiter.reset()

        stats = limiter.get_stats()
        assert stats["circuit_state"] == CircuitState.CLOSED.value
        assert stats["failures"] == 0
        assert stats["available_tokens"] == 100


class TestProcessBatch:
    """Batch processing isolates failures."""

    @pytest.mark.asyncio
    async def test_failed_item_does_not_abort_batch(self) -> None:
        """A failing item yields a failed entry; siblings still run."""
        # Arrange
        limiter = RateLimiter(_breaker_config(max_retries=1, retry_delay_ms=0))

        async def processor(item: int) -> int:
            await asyncio.sleep(0)
            if item == 2:
                raise RuntimeError("bad item")
            return item * 10

        # Act
        results = await limiter.process_batch([1, 2, 3], processor)

        # Assert
        assert [result.item for result in results] == [1, 2, 3]
        assert results[0].value == 10
        assert results[2].value == 30
        assert not results[1].succeeded
        assert results[1].retry_count == 1
        assert results[1].delay_ms == 0.0

    @pytest.mark.asyncio
    async def test_failures_report_retries_actually_spent(self) -> None:
        """Rejected and non-retryable items report zero retries."""
        # Arrange
        clock = FakeClock()
        limiter = RateLimiter(
            _breaker_config(max_retries=2, circuit_breaker_threshold=1), clock=clock
        )
        with pytest.raises(ValidationError):
            await limiter.process_with_rate_limit(
                "x", AsyncMock(side_effect=ValidationError("bad", field="query"))
            )
        processor = AsyncMock(return_value="ok")

        # Act
        results = await limiter.process_batch(["a", "b"], processor)

        # Assert
        assert limiter.state == CircuitState.OPEN
        assert all(isinstance(result.error, RateLimitError) for result in results)
        assert [result.retry_count for result in results] == [0, 0]
        processor.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_retryable_item_reports_no_retries(self) -> None:
        limiter = RateLimiter(_breaker_config(max_retries=3))

        results = await limiter.process_batch(
            ["a"], AsyncMock(side_effect=ValidationError("bad", field="query"))
        )

        assert isinstance(results[0].error, ValidationError)
        assert results[0].retry_count == 0


class TestConfig:
    """Config construction."""

    def test_from_settings(self) -> None:
        """Should copy rate limit settings."""
        settings = SimilaritySettings(rate_limit_max_requests=7, circuit_breaker_threshold=2)

        config = RateLimiterConfig.from_settings(settings)

        assert config.max_requests == 7
        assert config.circuit_breaker_threshold == 2
        assert config.circuit_breaker_timeout_ms == 30000
