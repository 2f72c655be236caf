from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Protocol

from bookings_api.application.hooks import BookingNotificationHook
from bookings_api.domain.entities import Actor, Booking
from bookings_api.domain.enums import ActorRole, BookingStatus
from bookings_api.domain.errors import (
    BookingError,
    BookingForbiddenError,
    BookingNotFoundError,
    InvalidPaymentAmountError,
)
from bookings_api.domain.ports import BookingStore, ProDirectory
from bookings_api.domain.value_objects import BookingId
from bookings_api.shared.security import sanitize_and_validate_text


class CreateBookingPersistenceError(RuntimeError):
    """Raised when the booking row and its first history entry cannot be stored."""

    pass


class CreateBookingAuditLogger(Protocol):
    def log_booking_created(
        self,
        *,
        booking_id: str,
        actor: str,
        context: dict[str, Any] | None = None,
    ) -> None: ...


@dataclass(slots=True, frozen=True)
class CreateBookingRequest:
    """Application input model to request a pro."""

    actor: Actor
    pro_id: str
    service_date: date | None = None
    service_time: str | None = None
    address: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.pro_id.strip():
            raise ValueError("pro_id must not be empty")


class CreateBookingUseCase:
    """Create a booking in ``requested`` with a server-side price.

    Example:
        ```python
        request = CreateBookingRequest(actor=customer, pro_id="pro-1", address="1 Main St")
        booking = await CreateBookingUseCase(store, pro_directory).execute(request)
        ```
    """

    def __init__(
        self,
        store: BookingStore,
        pro_directory: ProDirectory,
        notification_hook: BookingNotificationHook | None = None,
        audit_logger: CreateBookingAuditLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._pro_directory = pro_directory
        self._notification_hook = notification_hook or BookingNotificationHook()
        self._audit_logger = audit_logger
        self._clock = clock or (lambda: datetime.now(UTC))

    async def execute(self, request: CreateBookingRequest) -> Booking:
        """Create and persist a booking for the calling customer."""
        if request.actor.role != ActorRole.CUSTOMER:
            raise BookingForbiddenError("Only customers can request a booking")

        profile = await self._pro_directory.get_pro(request.pro_id)
        if profile is None:
            raise BookingNotFoundError("Service pro not found")
        if profile.starting_price is None or profile.starting_price <= Decimal("0"):
            raise InvalidPaymentAmountError("Service pro has no starting price")

        now = self._clock()
        booking = Booking(
            id=BookingId.new(),
            customer_id=request.actor.user_id,
            pro_id=profile.pro_id,
            price=profile.starting_price,
            status=BookingStatus.REQUESTED,
            service_date=request.service_date,
            service_time=self._clean(request.service_time, 20),
            address=self._clean(request.address, 255),
            notes=self._clean(request.notes, 2000),
            created_at=now,
            status_updated_at=now,
            status_updated_by=request.actor.user_id,
        )
        try:
            saved = await self._store.create(booking)
        except BookingError:
            raise
        except Exception as exc:
            raise CreateBookingPersistenceError("Unable to persist booking") from exc

        if self._audit_logger is not None:
            self._audit_logger.log_booking_created(
                booking_id=saved.id.value,
                actor=request.actor.user_id,
                context={
                    "status": saved.status.value,
                    "pro_id": saved.pro_id,
                    "price": str(saved.price),
                },
            )
        await self._notification_hook.after_created(saved)
        return saved

    @staticmethod
    def _clean(value: str | None, max_length: int) -> str | None:
        if value is None:
            return None
        cleaned = sanitize_and_validate_text(value, max_length=max_length)
        return cleaned or None
