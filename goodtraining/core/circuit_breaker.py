"""
Circuit breaker for calls to the REST backend.

When the backend keeps failing, pages stop waiting on it and render their
error state immediately until the timeout has passed.

State transitions:
    CLOSED → OPEN (after failure_threshold consecutive failures)
    OPEN → HALF_OPEN (after timeout_seconds)
    HALF_OPEN → CLOSED (on successful call)
    HALF_OPEN → OPEN (on failed call)
    CLOSED → CLOSED (on successful call, resets failure count)
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CircuitBreakerState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpenError(RuntimeError):
    """Raised when circuit breaker is open and requests fail fast."""

    pass


class CircuitBreaker:
    """
    Async circuit breaker.

    Attributes:
        failure_threshold: Number of consecutive failures before opening
        timeout_seconds: Seconds to wait before transitioning from OPEN to HALF_OPEN
        expected_exception: Exception type(s) that count as a failure
    """

    def __init__(
        self,
        name: str = "backend",
        failure_threshold: int = 5,
        timeout_seconds: int = 30,
        expected_exception: type[Exception] | tuple[type[Exception], ...] = Exception,
    ):
        self.name = name
        self._failure_threshold = failure_threshold
        self._timeout_seconds = timeout_seconds
        self._expected_exception = expected_exception

        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time: datetime | None = None

        self._lock = asyncio.Lock()

    def _should_attempt_reset(self) -> bool:
        if self._last_failure_time is None:
            return True

        elapsed = (datetime.now(UTC) - self._last_failure_time).total_seconds()
        return elapsed >= self._timeout_seconds

    def _seconds_until_retry(self) -> float:
        if self._last_failure_time is None:
            return 0.0
        elapsed = (datetime.now(UTC) - self._last_failure_time).total_seconds()
        return max(0.0, self._timeout_seconds - elapsed)

    def _record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = datetime.now(UTC)

        if (
            self._state == CircuitBreakerState.HALF_OPEN
            or self._failure_count >= self._failure_threshold
        ):
            self._state = CircuitBreakerState.OPEN
            logger.error(
                f"Circuit breaker '{self.name}' OPEN after {self._failure_count} "
                f"consecutive failures. Will allow retry after {self._timeout_seconds} seconds."
            )
        else:
            logger.warning(
                f"Circuit breaker '{self.name}' failure count: "
                f"{self._failure_count}/{self._failure_threshold}"
            )

    def _record_success(self) -> None:
        if self._state == CircuitBreakerState.HALF_OPEN:
            logger.info(f"Circuit breaker '{self.name}' CLOSED - service has recovered")
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time = None

    async def call_async(
        self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        """
        Execute a coroutine function through the circuit breaker.

        Raises:
            CircuitBreakerOpenError: If the circuit is open
            Exception: Whatever func raises
        """
        async with self._lock:
            if self._state == CircuitBreakerState.OPEN and self._should_attempt_reset():
                self._state = CircuitBreakerState.HALF_OPEN
                logger.info(f"Circuit breaker '{self.name}' HALF_OPEN - attempting recovery")

            if self._state == CircuitBreakerState.OPEN:
                logger.warning(
                    f"Circuit breaker '{self.name}' is OPEN - failing fast. "
                    f"Retry after {self._seconds_until_retry():.1f} seconds"
                )
                raise CircuitBreakerOpenError(
                    f"Circuit breaker '{self.name}' is OPEN - service unavailable"
                )

        awaitable = func(*args, **kwargs)
        if not inspect.isawaitable(awaitable):
            raise TypeError("call_async() expects a callable returning an awaitable")

        try:
            result = await awaitable
        except self._expected_exception:
            async with self._lock:
                self._record_failure()
            raise

        async with self._lock:
            self._record_success()
        return result

    @property
    def state(self) -> CircuitBreakerState:
        """Get current circuit breaker state."""
        return self._state

    @property
    def failure_count(self) -> int:
        """Get current failure count."""
        return self._failure_count

    @property
    def is_open(self) -> bool:
        """Check if circuit is open."""
        return self._state == CircuitBreakerState.OPEN

    def reset(self) -> None:
        """Reset the circuit breaker to CLOSED state (useful for testing)."""
        self._state = CircuitBreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time = None
        logger.debug(f"Circuit breaker '{self.name}' reset to CLOSED state")
