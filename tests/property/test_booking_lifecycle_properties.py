import asyncio
from datetime import timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from bookings_api.application.use_cases import (
    PAYMENT_SUCCEEDED,
    ConfirmPaymentUseCase,
    PaymentEvent,
    TransitionBookingRequest,
    TransitionBookingUseCase,
)
from bookings_api.domain.enums import BookingStatus
from bookings_api.domain.errors import BookingConflictError, BookingForbiddenError
from bookings_api.domain.state_machine import BookingOperation, rule_for, successors_of
from bookings_api.domain.value_objects import BookingId
from fakes import BOOKING_ID, CUSTOMER, PRO, FixedClock, InMemoryBookingStore, make_booking

_STEPS = st.lists(
    st.one_of(
        st.tuples(st.sampled_from(list(BookingOperation)), st.sampled_from([PRO, CUSTOMER])),
        st.just(("webhook", None)),
    ),
    max_size=12,
)


@settings(max_examples=75, deadline=None)
@given(steps=_STEPS, skews=st.lists(st.integers(min_value=-90, max_value=90), min_size=12, max_size=12))
def test_history_stays_ordered_and_consistent(steps, skews) -> None:
    """Any sequence of operations keeps history ordered and ending at the current status.

    The clock may move backwards between operations; recorded history never does.
    """
    store = InMemoryBookingStore(make_booking(payment_intent_id="pi_1"))
    clock = FixedClock()
    transitions = TransitionBookingUseCase(store, clock=clock)
    confirmations = ConfirmPaymentUseCase(store, clock=clock)

    async def run_scenario() -> None:
        for (operation, actor), skew in zip(steps, skews):
            clock.now = clock.now + timedelta(minutes=skew)
            before = store.row().status
            if operation == "webhook":
                await confirmations.execute(
                    PaymentEvent(
                        event_type=PAYMENT_SUCCEEDED,
                        booking_id=BookingId(BOOKING_ID),
                        payment_intent_id="pi_1",
                    )
                )
                if before == BookingStatus.AWAITING_PAYMENT:
                    assert store.row().status == BookingStatus.COMPLETED
                else:
                    assert store.row().status == before
                continue
            try:
                await transitions.execute(
                    TransitionBookingRequest(
                        booking_id=BookingId(BOOKING_ID),
                        operation=operation,
                        actor=actor,
                    )
                )
            except (BookingConflictError, BookingForbiddenError):
                assert store.row().status == before
                continue
            rule = rule_for(operation)
            assert actor.role in rule.actors
            assert rule.target in successors_of(before)
            assert store.row().status == rule.target

    asyncio.run(run_scenario())

    booking = store.row()
    history = booking.status_history
    assert history[-1].status == booking.status
    assert all(earlier.at <= later.at for earlier, later in zip(history, history[1:]))
    assert all(earlier.status != later.status for earlier, later in zip(history, history[1:]))
    terminal = [index for index, entry in enumerate(history) if entry.status.is_terminal]
    assert terminal in ([], [len(history) - 1])
