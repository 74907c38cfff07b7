"""
Rate limiter with circuit breaker.

Token bucket plus a CLOSED/OPEN/HALF_OPEN circuit around any async call.
Starved callers suspend on a condition with a timer instead of polling,
failures are retried with exponential backoff, and sustained failures
open the circuit so callers are rejected immediately until a cooldown
has passed.

Dependencies: asyncio (stdlib), page_reader.core.exceptions
System role: Protects the embedding service from bursts and outages
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from page_reader.configs.similarity import SimilaritySettings
from page_reader.core.exceptions import RateLimitError, SimilaritySearchError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

MIN_WAIT_MS = 100


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class RateLimiterConfig:
    """Token bucket, retry and circuit breaker parameters."""

    max_requests: int = 10
    window_ms: int = 1000
    max_retries: int = 3
    retry_delay_ms: int = 1000
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout_ms: int = 30000

    @classmethod
    def from_settings(cls, settings: SimilaritySettings) -> "RateLimiterConfig":
        """Build config from similarity settings."""
        return cls(
            max_requests=settings.rate_limit_max_requests,
            window_ms=settings.rate_limit_window_ms,
            max_retries=settings.rate_limit_max_retries,
            retry_delay_ms=settings.rate_limit_retry_delay_ms,
            circuit_breaker_threshold=settings.circuit_breaker_threshold,
            circuit_breaker_timeout_ms=settings.circuit_breaker_timeout_ms,
        )


@dataclass(frozen=True)
class RateLimitResult(Generic[T]):
    """Outcome of one guarded call."""

    item: T
    delay_ms: float
    retry_count: int
    value: Any = None
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class _Progress:
    delay_ms: float = 0.0
    retries: int = 0


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, SimilaritySearchError):
        return exc.retryable
    return True


class RateLimiter:
    """
    Token bucket and circuit breaker guarding an async processor.

    State is owned by this instance and changed only by the calls it
    guards. A clock returning seconds can be injected for tests.
    """

    def __init__(
        self,
        config: RateLimiterConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize rate limiter with a full bucket and a closed circuit.

        Args:
            config: Limits and breaker parameters
            clock: Monotonic clock in seconds
        """
        self._config = config or RateLimiterConfig()
        self._clock = clock
        self._tokens = float(self._config.max_requests)
        self._last_refill = clock()
        self._failures = 0
        self._state = CircuitState.CLOSED
        self._opened_at: float | None = None
        self._probe_in_flight = False
        self._condition = asyncio.Condition()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    def _refill(self) -> None:
        now = self._clock()
        elapsed_ms = (now - self._last_refill) * 1000
        if elapsed_ms <= 0:
            return
        capacity = float(self._config.max_requests)
        if elapsed_ms >= self._config.window_ms:
            self._tokens = capacity
        else:
            added = elapsed_ms / self._config.window_ms * capacity
            self._tokens = min(capacity, self._tokens + added)
        self._last_refill = now

    def _check_circuit(self) -> None:
        """Raise RateLimitError while the circuit rejects calls."""
        if self._state == CircuitState.OPEN:
            elapsed_ms = (self._clock() - (self._opened_at or 0.0)) * 1000
            remaining_ms = self._config.circuit_breaker_timeout_ms - elapsed_ms
            if remaining_ms > 0:
                raise RateLimitError(
                    "Circuit breaker is open",
                    retry_after_ms=remaining_ms,
                    details={"failures": self._failures},
                )
            self._state = CircuitState.HALF_OPEN
            self._probe_in_flight = False
            logger.info(f"{__name__}:_check_circuit - Circuit half-open, allowing a probe")

        if self._state == CircuitState.HALF_OPEN:
            if self._probe_in_flight:
                raise RateLimitError(
                    "Circuit breaker is half-open and a probe is in flight",
                    retry_after_ms=float(MIN_WAIT_MS),
                )
            self._probe_in_flight = True

    def _record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            logger.info(f"{__name__}:_record_success - Probe succeeded, circuit closed")
            self._state = CircuitState.CLOSED
            self._failures = 0
            self._opened_at = None
            self._probe_in_flight = False
            return
        self._failures = max(0, self._failures - 1)

    def _record_failure(self) -> None:
        self._failures += 1
        if self._state == CircuitState.HALF_OPEN:
            self._open_circuit("Probe failed")
        elif (
            self._state == CircuitState.CLOSED
            and self._failures >= self._config.circuit_breaker_threshold
        ):
            self._open_circuit(f"{self._failures} consecutive failures")

    def _open_circuit(self, reason: str) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._probe_in_flight = False
        logger.warning(
            f"{__name__}:_open_circuit - Circuit opened ({reason}), "
            f"rejecting calls for {self._config.circuit_breaker_timeout_ms}ms"
        )

    async def _acquire_token(self) -> float:
        """
        Take one token, suspending while the bucket is empty.

        Returns:
            float: Milliseconds spent waiting
        """
        waited_ms = 0.0
        async with self._condition:
            while True:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return waited_ms
                since_refill_ms = (self._clock() - self._last_refill) * 1000
                wait_ms = max(MIN_WAIT_MS, self._config.window_ms - since_refill_ms)
                started = self._clock()
                try:
                    await asyncio.wait_for(self._condition.wait(), timeout=wait_ms / 1000)
                except asyncio.TimeoutError:
                    pass
                waited_ms += (self._clock() - started) * 1000

    async def process_with_rate_limit(
        self,
        item: T,
        processor: Callable[[T], Awaitable[R]],
    ) -> RateLimitResult[T]:
        """
        Run processor(item) under the rate limit, retrying failures.

        Args:
            item: Value passed to the processor
            processor: Async callable doing the guarded work

        Returns:
            RateLimitResult: Item, accumulated delay, retries used and the
                processor's return value

        Raises:
            RateLimitError: Circuit open, or retries exhausted (chained
                from the last processor error)
            SimilaritySearchError: Non-retryable processor failures
        """
        return await self._run_guarded(item, processor, _Progress())

    async def _run_guarded(
        self,
        item: T,
        processor: Callable[[T], Awaitable[R]],
        progress: "_Progress",
    ) -> RateLimitResult[T]:
        """Retry loop; progress records delay and retries even when it raises."""
        while True:
            self._check_circuit()
            half_open = self._state == CircuitState.HALF_OPEN
            try:
                progress.delay_ms += await self._acquire_token()
                value = await processor(item)
            except asyncio.CancelledError:
                if half_open:
                    self._probe_in_flight = False
                raise
            except Exception as exc:
                self._record_failure()
                if not _is_retryable(exc):
                    raise
                if progress.retries >= self._config.max_retries:
                    raise RateLimitError(
                        f"Gave up after {self._config.max_retries} retries: {exc}",
                        retry_after_ms=float(self._config.retry_delay_ms),
                        details={"retries": progress.retries},
                    ) from exc
                progress.retries += 1
                backoff_ms = self._config.retry_delay_ms * 2 ** (progress.retries - 1)
                progress.delay_ms += backoff_ms
                logger.warning(
                    f"{__name__}:process_with_rate_limit - Attempt {progress.retries} failed "
                    f"({type(exc).__name__}), retrying in {backoff_ms}ms"
                )
                await asyncio.sleep(backoff_ms / 1000)
                continue

            self._record_success()
            return RateLimitResult(
                item=item,
                delay_ms=progress.delay_ms,
                retry_count=progress.retries,
                value=value,
            )

    async def process_batch(
        self,
        items: list[T],
        processor: Callable[[T], Awaitable[R]],
    ) -> list[RateLimitResult[T]]:
        """
        Process items one after another; a failure never aborts the batch.

        Args:
            items: Values to process
            processor: Async callable doing the guarded work

        Returns:
            list[RateLimitResult]: One result per item, in order. Failed items
                carry the error plus the delay and retries actually spent
                (0 retries for circuit rejections and non-retryable errors)
        """
        results: list[RateLimitResult[T]] = []
        for item in items:
            progress = _Progress()
            try:
                results.append(await self._run_guarded(item, processor, progress))
            except Exception as exc:
                logger.warning(
                    f"{__name__}:process_batch - Item failed: {type(exc).__name__}: {exc}"
                )
                results.append(
                    RateLimitResult(
                        item=item,
                        delay_ms=progress.delay_ms,
                        retry_count=progress.retries,
                        error=exc,
                    )
                )
        return results

    def get_stats(self) -> dict[str, Any]:
        """
        Snapshot of the limiter state.

        Returns:
            dict: available_tokens, failures, circuit_state, circuit_opened_at
        """
        self._refill()
        return {
            "available_tokens": int(self._tokens),
            "failures": self._failures,
            "circuit_state": self._state.value,
            "circuit_opened_at": self._opened_at,
        }

    async def reset(self) -> None:
        """Refill the bucket, close the circuit and wake any waiters."""
        async with self._condition:
            self._tokens = float(self._config.max_requests)
            self._last_refill = self._clock()
            self._failures = 0
            self._state = CircuitState.CLOSED
            self._opened_at = None
            self._probe_in_flight = False
            self._condition.notify_all()
