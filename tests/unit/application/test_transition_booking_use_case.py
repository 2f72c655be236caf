from datetime import timedelta
from decimal import Decimal

import pytest

from bookings_api.application.hooks import BookingNotificationHook
from bookings_api.application.use_cases import TransitionBookingRequest, TransitionBookingUseCase
from bookings_api.domain.enums import BookingStatus
from bookings_api.domain.errors import (
    BookingConflictError,
    BookingForbiddenError,
    BookingNotFoundError,
)
from bookings_api.domain.state_machine import BookingOperation
from bookings_api.domain.value_objects import BookingId
from fakes import (
    BOOKING_ID,
    CUSTOMER,
    OTHER_CUSTOMER,
    OTHER_PRO,
    PRO,
    FailingNotificationEmitter,
    FixedClock,
    InMemoryBookingStore,
    SpyAuditLogger,
    SpyNotificationEmitter,
    make_booking,
)


def _use_case(
    store: InMemoryBookingStore,
    emitter=None,
    audit_logger: SpyAuditLogger | None = None,
    clock: FixedClock | None = None,
) -> TransitionBookingUseCase:
    return TransitionBookingUseCase(
        store=store,
        notification_hook=BookingNotificationHook(emitter=emitter),
        audit_logger=audit_logger,
        clock=clock or FixedClock(),
    )


def _request(operation: BookingOperation, actor=PRO, final_price=None) -> TransitionBookingRequest:
    return TransitionBookingRequest(
        booking_id=BookingId(BOOKING_ID),
        operation=operation,
        actor=actor,
        final_price=final_price,
    )


@pytest.mark.asyncio
async def test_accept_moves_requested_booking_and_notifies_customer() -> None:
    store = InMemoryBookingStore(make_booking())
    emitter = SpyNotificationEmitter()
    audit = SpyAuditLogger()
    clock = FixedClock()

    booking = await _use_case(store, emitter, audit, clock).execute(_request(BookingOperation.ACCEPT))

    assert booking.status == BookingStatus.ACCEPTED
    assert store.row().status == BookingStatus.ACCEPTED
    assert store.row().accepted_at == clock.now
    assert store.row().status_updated_by == PRO.user_id
    assert [entry.status for entry in store.row().status_history] == [
        BookingStatus.REQUESTED,
        BookingStatus.ACCEPTED,
    ]
    user_id, notification_type, payload = emitter.events[0]
    assert user_id == CUSTOMER.user_id
    assert notification_type == "booking_accepted"
    assert payload["deep_link"] == f"/bookings/{BOOKING_ID}"
    assert audit.events[0][0] == "BOOKING_TRANSITIONED"
    assert audit.events[0][1]["context"]["from_status"] == "requested"


@pytest.mark.asyncio
async def test_accept_treats_legacy_pending_as_requested() -> None:
    store = InMemoryBookingStore(make_booking(status=BookingStatus.PENDING))

    booking = await _use_case(store).execute(_request(BookingOperation.ACCEPT))

    assert booking.status == BookingStatus.ACCEPTED
    expected_status, _ = store.update_calls[0]
    assert expected_status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_full_lifecycle_sets_each_timestamp_once_and_ends_awaiting_payment() -> None:
    store = InMemoryBookingStore(make_booking())
    clock = FixedClock()
    use_case = _use_case(store, clock=clock)

    stamps = {}
    for operation, field in (
        (BookingOperation.ACCEPT, "accepted_at"),
        (BookingOperation.ON_THE_WAY, "en_route_at"),
        (BookingOperation.START, "started_at"),
        (BookingOperation.COMPLETE, "completed_at"),
    ):
        clock.now += timedelta(minutes=10)
        await use_case.execute(_request(operation))
        stamps[field] = clock.now

    row = store.row()
    assert row.status == BookingStatus.AWAITING_PAYMENT
    assert [entry.status for entry in row.status_history] == [
        BookingStatus.REQUESTED,
        BookingStatus.ACCEPTED,
        BookingStatus.ON_THE_WAY,
        BookingStatus.IN_PROGRESS,
        BookingStatus.AWAITING_PAYMENT,
    ]
    for field, expected in stamps.items():
        assert getattr(row, field) == expected


@pytest.mark.asyncio
async def test_second_accept_is_conflict_without_duplicate_history() -> None:
    store = InMemoryBookingStore(make_booking())
    use_case = _use_case(store)
    await use_case.execute(_request(BookingOperation.ACCEPT))

    with pytest.raises(BookingConflictError) as exc_info:
        await use_case.execute(_request(BookingOperation.ACCEPT))

    assert exc_info.value.current_status == BookingStatus.ACCEPTED
    assert len(store.row().status_history) == 2


@pytest.mark.asyncio
async def test_accept_after_decline_is_conflict() -> None:
    store = InMemoryBookingStore(make_booking())
    use_case = _use_case(store)

    declined = await use_case.execute(_request(BookingOperation.DECLINE))
    with pytest.raises(BookingConflictError) as exc_info:
        await use_case.execute(_request(BookingOperation.ACCEPT))

    assert declined.status == BookingStatus.DECLINED
    assert exc_info.value.current_status == BookingStatus.DECLINED


@pytest.mark.asyncio
@pytest.mark.parametrize("actor", [OTHER_PRO, CUSTOMER, OTHER_CUSTOMER])
async def test_pro_operations_reject_anyone_but_assigned_pro(actor) -> None:
    store = InMemoryBookingStore(make_booking())

    with pytest.raises(BookingForbiddenError) as exc_info:
        await _use_case(store).execute(_request(BookingOperation.ACCEPT, actor=actor))

    assert exc_info.value.current_status == BookingStatus.REQUESTED
    assert store.update_calls == []


@pytest.mark.asyncio
async def test_forbidden_is_checked_before_state() -> None:
    store = InMemoryBookingStore(make_booking(status=BookingStatus.COMPLETED))

    with pytest.raises(BookingForbiddenError):
        await _use_case(store).execute(_request(BookingOperation.ACCEPT, actor=OTHER_PRO))


@pytest.mark.asyncio
async def test_missing_booking_raises_not_found() -> None:
    with pytest.raises(BookingNotFoundError):
        await _use_case(InMemoryBookingStore()).execute(_request(BookingOperation.ACCEPT))


@pytest.mark.asyncio
async def test_lost_race_reports_conflict_with_winner_status() -> None:
    store = InMemoryBookingStore(make_booking())

    def customer_cancels_first(s: InMemoryBookingStore) -> None:
        s.row().status = BookingStatus.CANCELLED

    store.before_update = customer_cancels_first
    emitter = SpyNotificationEmitter()

    with pytest.raises(BookingConflictError) as exc_info:
        await _use_case(store, emitter).execute(_request(BookingOperation.ACCEPT))

    assert exc_info.value.current_status == BookingStatus.CANCELLED
    assert [entry.status for entry in store.row().status_history] == [BookingStatus.REQUESTED]
    assert emitter.events == []


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_transition() -> None:
    store = InMemoryBookingStore(make_booking())

    booking = await _use_case(store, FailingNotificationEmitter()).execute(
        _request(BookingOperation.ACCEPT)
    )

    assert booking.status == BookingStatus.ACCEPTED
    assert store.row().status == BookingStatus.ACCEPTED


@pytest.mark.asyncio
async def test_complete_with_final_price_replaces_price_and_requests_payment() -> None:
    store = InMemoryBookingStore(make_booking(status=BookingStatus.IN_PROGRESS))
    emitter = SpyNotificationEmitter()

    booking = await _use_case(store, emitter).execute(
        _request(BookingOperation.COMPLETE, final_price=Decimal("175.00"))
    )

    assert booking.status == BookingStatus.AWAITING_PAYMENT
    assert store.row().price == Decimal("175.00")
    assert emitter.events[0][1] == "payment_required"
    assert emitter.events[0][2]["title"] == "Payment needed"


@pytest.mark.asyncio
async def test_customer_cancel_notifies_pro_with_pro_deep_link() -> None:
    store = InMemoryBookingStore(make_booking(status=BookingStatus.ACCEPTED))
    emitter = SpyNotificationEmitter()

    booking = await _use_case(store, emitter).execute(
        _request(BookingOperation.CANCEL, actor=CUSTOMER)
    )

    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_at is not None
    user_id, _, payload = emitter.events[0]
    assert user_id == PRO.user_id
    assert payload["deep_link"] == f"/pro/bookings/{BOOKING_ID}"


@pytest.mark.asyncio
async def test_cancel_is_not_allowed_once_awaiting_payment() -> None:
    store = InMemoryBookingStore(make_booking(status=BookingStatus.AWAITING_PAYMENT))

    with pytest.raises(BookingConflictError):
        await _use_case(store).execute(_request(BookingOperation.CANCEL, actor=CUSTOMER))


def test_final_price_is_only_accepted_for_complete() -> None:
    with pytest.raises(ValueError, match="only accepted when completing"):
        _request(BookingOperation.ACCEPT, final_price=Decimal("10.00"))
    with pytest.raises(ValueError, match="greater than zero"):
        _request(BookingOperation.COMPLETE, final_price=Decimal("0"))
