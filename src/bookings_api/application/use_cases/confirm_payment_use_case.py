import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

from bookings_api.application.hooks import BookingNotificationHook
from bookings_api.application.ports import BookingStore
from bookings_api.domain.entities import SYSTEM_ACTOR, Booking, BookingPatch
from bookings_api.domain.enums import BookingStatus, PaymentStatus
from bookings_api.domain.errors import BookingConflictError, BookingNotFoundError
from bookings_api.domain.value_objects import BookingId

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_REQUIRES_ACTION = "payment_intent.requires_action"
PAYMENT_FAILED = "payment_intent.payment_failed"
HANDLED_EVENT_TYPES = frozenset({PAYMENT_SUCCEEDED, PAYMENT_REQUIRES_ACTION, PAYMENT_FAILED})


class ConfirmPaymentAuditLogger(Protocol):
    def log_payment_confirmed(
        self,
        *,
        booking_id: str,
        actor: str,
        context: dict[str, Any] | None = None,
    ) -> None: ...


@dataclass(slots=True, frozen=True)
class PaymentEvent:
    """Provider notification about one payment intent."""

    event_type: str
    booking_id: BookingId
    payment_intent_id: str

    def __post_init__(self) -> None:
        if self.event_type not in HANDLED_EVENT_TYPES:
            raise ValueError(f"Unsupported payment event type: {self.event_type}")
        if not self.payment_intent_id.strip():
            raise ValueError("payment_intent_id must not be empty")


class ConfirmPaymentUseCase:
    """Apply out-of-band payment outcomes delivered by the provider webhook.

    Deliveries may repeat or arrive out of order, so an event that would not
    change anything is accepted as a no-op. Events for an intent other than
    the booking's current one are ignored.
    """

    def __init__(
        self,
        store: BookingStore,
        notification_hook: BookingNotificationHook | None = None,
        audit_logger: ConfirmPaymentAuditLogger | None = None,
        clock: Callable[[], datetime] | None = None,
        max_attempts: int = 2,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be greater than zero")
        self._store = store
        self._notification_hook = notification_hook or BookingNotificationHook()
        self._audit_logger = audit_logger
        self._clock = clock or (lambda: datetime.now(UTC))
        self._max_attempts = max_attempts

    async def execute(self, event: PaymentEvent) -> Booking:
        """Persist the payment outcome, re-reading once if a concurrent write wins."""
        for _ in range(self._max_attempts):
            booking = await self._store.get(event.booking_id)
            if booking is None:
                raise BookingNotFoundError(f"Booking not found for id={event.booking_id.value}")
            if booking.payment_intent_id != event.payment_intent_id:
                logger.info(
                    "payment_event_ignored booking_id=%s payment_intent_id=%s current_intent=%s",
                    booking.id.value,
                    event.payment_intent_id,
                    booking.payment_intent_id,
                )
                return booking

            expected_status = booking.status
            patch = self._plan(booking, event)
            if patch is None:
                return booking

            affected = await self._store.conditional_update(
                booking_id=booking.id,
                expected_status=expected_status,
                patch=patch,
            )
            if affected == 1:
                if self._audit_logger is not None:
                    self._audit_logger.log_payment_confirmed(
                        booking_id=booking.id.value,
                        actor=SYSTEM_ACTOR.user_id,
                        context={
                            "event_type": event.event_type,
                            "payment_intent_id": event.payment_intent_id,
                            "from_status": expected_status.value,
                            "to_status": booking.status.value,
                            "payment_status": booking.payment_status.value,
                        },
                    )
                if event.event_type == PAYMENT_SUCCEEDED:
                    await self._notification_hook.after_payment_confirmed(booking)
                return booking

        current = await self._store.get(event.booking_id)
        raise BookingConflictError(
            "Booking changed concurrently while applying payment event",
            current_status=current.status if current is not None else None,
        )

    def _plan(self, booking: Booking, event: PaymentEvent) -> BookingPatch | None:
        if event.event_type == PAYMENT_SUCCEEDED:
            return self._plan_succeeded(booking)
        if booking.payment_status == PaymentStatus.PAID:
            return None
        target = (
            PaymentStatus.REQUIRES_ACTION
            if event.event_type == PAYMENT_REQUIRES_ACTION
            else PaymentStatus.UNPAID
        )
        if booking.payment_status == target:
            return None
        booking.payment_status = target
        return BookingPatch(payment_status=target)

    def _plan_succeeded(self, booking: Booking) -> BookingPatch | None:
        now = self._clock()
        if booking.status == BookingStatus.AWAITING_PAYMENT:
            patch = booking.apply_transition(
                BookingStatus.COMPLETED,
                at=now,
                timestamp_field="paid_at",
                changed_by=SYSTEM_ACTOR.user_id,
            )
        elif booking.payment_status == PaymentStatus.PAID:
            return None
        else:
            patch = BookingPatch()
            if booking.paid_at is None:
                booking.paid_at = now
                patch.timestamps["paid_at"] = now
        booking.payment_status = PaymentStatus.PAID
        patch.payment_status = PaymentStatus.PAID
        return patch
