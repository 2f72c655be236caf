import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bookings_api.infrastructure.gateways import StripeRequestError
from bookings_api.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    CircuitState,
)


@settings(max_examples=50, deadline=None)
@given(failure_threshold=st.integers(min_value=1, max_value=20))
def test_circuit_breaker_opens_after_repeated_failures(failure_threshold: int) -> None:
    """The breaker stops calling the upstream once the threshold is reached."""
    breaker = CircuitBreaker(
        name="stripe",
        failure_threshold=failure_threshold,
        recovery_timeout_seconds=60.0,
    )
    executions = 0

    async def failing_call() -> None:
        nonlocal executions
        executions += 1
        raise ConnectionError("payment provider unreachable")

    async def run_scenario() -> None:
        for _ in range(failure_threshold):
            with pytest.raises(ConnectionError):
                await breaker.call(failing_call)

        assert breaker.state == CircuitState.OPEN
        assert breaker.failure_count == failure_threshold

        with pytest.raises(CircuitBreakerOpenError):
            await breaker.call(failing_call)

    asyncio.run(run_scenario())
    assert executions == failure_threshold


@settings(max_examples=50, deadline=None)
@given(
    outcomes=st.lists(st.sampled_from(["declined", "ok"]), min_size=1, max_size=30),
)
def test_provider_rejections_never_open_the_circuit(outcomes: list[str]) -> None:
    """Client errors from a healthy provider keep the circuit closed."""
    breaker = CircuitBreaker(
        failure_threshold=1,
        recovery_timeout_seconds=60.0,
        ignored_exceptions=(StripeRequestError,),
    )

    async def call(outcome: str) -> str:
        if outcome == "declined":
            raise StripeRequestError(402, "Your card was declined.", "card_declined")
        return outcome

    async def run_scenario() -> None:
        for outcome in outcomes:
            if outcome == "declined":
                with pytest.raises(StripeRequestError):
                    await breaker.call(lambda: call(outcome))
            else:
                assert await breaker.call(lambda: call(outcome)) == "ok"

    asyncio.run(run_scenario())
    assert breaker.state == CircuitState.CLOSED
