import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from bookings_api.application.ports import NotificationEmitter
from bookings_api.domain.entities import Actor, Booking
from bookings_api.domain.state_machine import BookingOperation

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class NotificationTemplate:
    type: str
    title: str
    body: str


TRANSITION_TEMPLATES: dict[BookingOperation, NotificationTemplate] = {
    BookingOperation.ACCEPT: NotificationTemplate(
        type="booking_accepted",
        title="Booking accepted",
        body="Your booking was accepted.",
    ),
    BookingOperation.DECLINE: NotificationTemplate(
        type="booking_status",
        title="Booking declined",
        body="Your booking request was declined.",
    ),
    BookingOperation.ON_THE_WAY: NotificationTemplate(
        type="booking_status",
        title="Pro on the way",
        body="Your pro is on the way.",
    ),
    BookingOperation.START: NotificationTemplate(
        type="booking_status",
        title="Job started",
        body="Your pro has started the job.",
    ),
    BookingOperation.COMPLETE: NotificationTemplate(
        type="payment_required",
        title="Payment needed",
        body="The job is complete. Please complete payment.",
    ),
    BookingOperation.CANCEL: NotificationTemplate(
        type="booking_status",
        title="Booking cancelled",
        body="This booking was cancelled.",
    ),
}

BOOKING_REQUEST_TEMPLATE = NotificationTemplate(
    type="booking_request",
    title="New booking request",
    body="You have a new booking request.",
)
PAYMENT_CAPTURED_TEMPLATE = NotificationTemplate(
    type="payment_captured",
    title="Payment completed",
    body="Payment for this booking has been processed.",
)


def customer_deep_link(booking_id: str) -> str:
    return f"/bookings/{booking_id}"


def pro_deep_link(booking_id: str) -> str:
    return f"/pro/bookings/{booking_id}"


class BookingNotificationHook:
    """Post-commit hook that notifies the counterparty of a booking change.

    Runs only after the triggering write is durable. Failures are logged and
    never propagate to the caller.
    """

    def __init__(self, emitter: NotificationEmitter | None = None) -> None:
        self._emitter = emitter

    async def after_created(self, booking: Booking) -> None:
        await self._notify(booking.pro_id, BOOKING_REQUEST_TEMPLATE, booking, pro_deep_link)

    async def after_transition(
        self,
        booking: Booking,
        operation: BookingOperation,
        actor: Actor,
    ) -> None:
        template = TRANSITION_TEMPLATES.get(operation)
        if template is None:
            return
        recipient = booking.counterparty_of(actor)
        link = pro_deep_link if recipient == booking.pro_id else customer_deep_link
        await self._notify(recipient, template, booking, link)

    async def after_payment_confirmed(self, booking: Booking) -> None:
        await self._notify(booking.customer_id, PAYMENT_CAPTURED_TEMPLATE, booking, customer_deep_link)
        await self._notify(booking.pro_id, PAYMENT_CAPTURED_TEMPLATE, booking, pro_deep_link)

    async def _notify(
        self,
        user_id: str,
        template: NotificationTemplate,
        booking: Booking,
        deep_link: Callable[[str], str],
    ) -> None:
        if self._emitter is None:
            return
        payload: dict[str, Any] = {
            "title": template.title,
            "body": template.body,
            "booking_id": booking.id.value,
            "status": booking.status.value,
            "deep_link": deep_link(booking.id.value),
        }
        try:
            await self._emitter.emit(user_id, template.type, payload)
        except Exception:
            logger.exception(
                "notification_failed booking_id=%s type=%s",
                booking.id.value,
                template.type,
            )
