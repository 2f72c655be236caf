import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Protocol

from bookings_api.application.hooks import BookingNotificationHook
from bookings_api.domain.entities import Actor, Booking
from bookings_api.domain.errors import (
    BookingConflictError,
    BookingForbiddenError,
    BookingNotFoundError,
)
from bookings_api.domain.ports import BookingStore
from bookings_api.domain.state_machine import BookingOperation, TransitionRule, rule_for
from bookings_api.domain.value_objects import BookingId

logger = logging.getLogger(__name__)


class TransitionAuditLogger(Protocol):
    """Port for audit events emitted in the transition flow."""

    def log_booking_transitioned(
        self,
        *,
        booking_id: str,
        actor: str,
        context: dict[str, Any] | None = None,
    ) -> None: ...


@dataclass(slots=True, frozen=True)
class TransitionBookingRequest:
    """Input model for a status-changing booking operation."""

    booking_id: BookingId
    operation: BookingOperation
    actor: Actor
    final_price: Decimal | None = None

    def __post_init__(self) -> None:
        if self.final_price is not None:
            if self.operation != BookingOperation.COMPLETE:
                raise ValueError("final_price is only accepted when completing a booking")
            if self.final_price <= Decimal("0"):
                raise ValueError("final_price must be greater than zero")


class TransitionBookingUseCase:
    """Apply one lifecycle operation to a booking with optimistic concurrency.

    Loads the booking, checks the caller against the operation's actor role and
    the current status against its valid-from set, then writes the new status
    with a compare-and-set on the status it read. A lost race is reported as a
    conflict carrying the status the winner wrote.

    Example:
        ```python
        request = TransitionBookingRequest(booking_id, BookingOperation.ACCEPT, actor)
        booking = await use_case.execute(request)
        ```
    """

    def __init__(
        self,
        store: BookingStore,
        notification_hook: BookingNotificationHook | None = None,
        audit_logger: TransitionAuditLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._notification_hook = notification_hook or BookingNotificationHook()
        self._audit_logger = audit_logger
        self._clock = clock or (lambda: datetime.now(UTC))

    async def execute(self, request: TransitionBookingRequest) -> Booking:
        """Run the transition and return the updated booking."""
        rule = rule_for(request.operation)
        booking = await self._store.get(request.booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking not found for id={request.booking_id.value}")

        self._authorize(booking, rule, request.actor)

        previous_status = booking.status
        if not rule.allows_from(previous_status):
            raise BookingConflictError(
                f"Cannot {rule.operation.value} booking with status: {previous_status.value}",
                current_status=previous_status,
            )

        patch = booking.apply_transition(
            rule.target,
            at=self._clock(),
            timestamp_field=rule.timestamp_field,
            changed_by=request.actor.user_id,
        )
        if request.final_price is not None:
            booking.price = request.final_price
            patch.price = request.final_price

        affected = await self._store.conditional_update(
            booking_id=booking.id,
            expected_status=previous_status,
            patch=patch,
        )
        if affected != 1:
            await self._raise_lost_race(booking.id, rule)

        if self._audit_logger is not None:
            self._audit_logger.log_booking_transitioned(
                booking_id=booking.id.value,
                actor=request.actor.user_id,
                context={
                    "operation": rule.operation.value,
                    "from_status": previous_status.value,
                    "to_status": rule.target.value,
                    "role": request.actor.role.value,
                },
            )
        await self._notification_hook.after_transition(booking, rule.operation, request.actor)
        return booking

    @staticmethod
    def _authorize(booking: Booking, rule: TransitionRule, actor: Actor) -> None:
        allowed = actor.role in rule.actors and booking.is_party(actor)
        if not allowed:
            raise BookingForbiddenError(
                f"Actor is not allowed to {rule.operation.value} this booking",
                current_status=booking.status,
            )

    async def _raise_lost_race(self, booking_id: BookingId, rule: TransitionRule) -> None:
        current = await self._store.get(booking_id)
        current_status = current.status if current is not None else None
        logger.warning(
            "booking_transition_conflict booking_id=%s operation=%s current_status=%s",
            booking_id.value,
            rule.operation.value,
            current_status,
        )
        raise BookingConflictError(
            f"Booking status changed concurrently; {rule.operation.value} was not applied",
            current_status=current_status,
        )
