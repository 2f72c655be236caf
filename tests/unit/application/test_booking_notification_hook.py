import pytest

from bookings_api.application.hooks import BookingNotificationHook
from bookings_api.domain.enums import BookingStatus
from bookings_api.domain.state_machine import BookingOperation
from fakes import (
    BOOKING_ID,
    CUSTOMER,
    PRO,
    FailingNotificationEmitter,
    SpyNotificationEmitter,
    make_booking,
)


@pytest.mark.asyncio
async def test_pro_action_notifies_customer_with_customer_link() -> None:
    emitter = SpyNotificationEmitter()
    booking = make_booking(status=BookingStatus.ON_THE_WAY)

    await BookingNotificationHook(emitter).after_transition(booking, BookingOperation.ON_THE_WAY, PRO)

    user_id, kind, payload = emitter.events[0]
    assert user_id == CUSTOMER.user_id
    assert kind == "booking_status"
    assert payload["deep_link"] == f"/bookings/{BOOKING_ID}"
    assert payload["status"] == "on_the_way"


@pytest.mark.asyncio
async def test_hook_without_emitter_is_silent() -> None:
    await BookingNotificationHook().after_created(make_booking())


@pytest.mark.asyncio
async def test_emitter_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    await BookingNotificationHook(FailingNotificationEmitter()).after_payment_confirmed(
        make_booking(status=BookingStatus.COMPLETED)
    )

    assert "notification_failed" in caplog.text
