import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from time import monotonic
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CircuitState(StrEnum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreakerOpenError(RuntimeError):
    pass


class CircuitBreaker:
    """Fail fast against an upstream after repeated failures.

    Exceptions listed in ``ignored_exceptions`` are re-raised without counting
    as failures; a declined card is an answer from a healthy upstream.
    """

    def __init__(
        self,
        name: str = "upstream",
        failure_threshold: int = 5,
        recovery_timeout_seconds: float = 30.0,
        ignored_exceptions: tuple[type[BaseException], ...] = (),
        time_provider: Callable[[], float] | None = None,
    ) -> None:
        if failure_threshold <= 0:
            raise ValueError("failure_threshold must be greater than zero")
        if recovery_timeout_seconds <= 0:
            raise ValueError("recovery_timeout_seconds must be greater than zero")

        self._name = name
        self._failure_threshold = failure_threshold
        self._recovery_timeout_seconds = recovery_timeout_seconds
        self._ignored_exceptions = ignored_exceptions
        self._time_provider = time_provider or monotonic

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            if self._state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self._state = CircuitState.HALF_OPEN
                else:
                    raise CircuitBreakerOpenError(f"Circuit breaker '{self._name}' is OPEN")

        try:
            result = await func()
        except self._ignored_exceptions:
            async with self._lock:
                self._on_success()
            raise
        except Exception:
            async with self._lock:
                self._on_failure()
            raise
        else:
            async with self._lock:
                self._on_success()
            return result

    def _should_attempt_reset(self) -> bool:
        if self._opened_at is None:
            return False
        return (self._time_provider() - self._opened_at) >= self._recovery_timeout_seconds

    def _on_success(self) -> None:
        self._failure_count = 0
        self._state = CircuitState.CLOSED
        self._opened_at = None

    def _on_failure(self) -> None:
        self._failure_count += 1
        if self._state == CircuitState.HALF_OPEN or self._failure_count >= self._failure_threshold:
            if self._state != CircuitState.OPEN:
                logger.warning(
                    "circuit_opened name=%s failures=%s", self._name, self._failure_count
                )
            self._state = CircuitState.OPEN
            self._opened_at = self._time_provider()
