import pytest

from bookings_api.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    CircuitState,
)


class DeclinedError(Exception):
    pass


class FakeTime:
    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


async def _fail() -> None:
    raise ConnectionError("upstream down")


async def _decline() -> None:
    raise DeclinedError("declined")


async def _ok() -> str:
    return "ok"


@pytest.mark.asyncio
async def test_breaker_opens_after_threshold_and_recovers_after_timeout() -> None:
    clock = FakeTime()
    breaker = CircuitBreaker(failure_threshold=2, recovery_timeout_seconds=30, time_provider=clock)

    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.call(_fail)

    assert breaker.state == CircuitState.OPEN
    with pytest.raises(CircuitBreakerOpenError):
        await breaker.call(_ok)

    clock.value = 31.0
    assert await breaker.call(_ok) == "ok"
    assert breaker.state == CircuitState.CLOSED


@pytest.mark.asyncio
async def test_half_open_failure_reopens_immediately() -> None:
    clock = FakeTime()
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout_seconds=10, time_provider=clock)

    with pytest.raises(ConnectionError):
        await breaker.call(_fail)
    clock.value = 11.0
    with pytest.raises(ConnectionError):
        await breaker.call(_fail)

    assert breaker.state == CircuitState.OPEN


@pytest.mark.asyncio
async def test_ignored_exceptions_do_not_count_as_failures() -> None:
    breaker = CircuitBreaker(failure_threshold=1, ignored_exceptions=(DeclinedError,))

    for _ in range(3):
        with pytest.raises(DeclinedError):
            await breaker.call(_decline)

    assert breaker.state == CircuitState.CLOSED
    assert breaker.failure_count == 0


def test_breaker_rejects_invalid_configuration() -> None:
    with pytest.raises(ValueError):
        CircuitBreaker(failure_threshold=0)
