from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from bookings_api.domain.enums import ActorRole, BookingStatus, PaymentStatus
from bookings_api.domain.value_objects import BookingId

TIMESTAMP_FIELDS = (
    "accepted_at",
    "en_route_at",
    "started_at",
    "completed_at",
    "cancelled_at",
    "paid_at",
)


@dataclass(slots=True, frozen=True)
class Actor:
    """Request-scoped caller identity resolved by the auth layer."""

    user_id: str
    role: ActorRole

    def __post_init__(self) -> None:
        if not self.user_id.strip():
            raise ValueError("user_id must not be empty")


SYSTEM_ACTOR = Actor(user_id="system", role=ActorRole.SYSTEM)


@dataclass(slots=True, frozen=True)
class StatusHistoryEntry:
    """One appended status-history item."""

    status: BookingStatus
    at: datetime
    changed_by: str | None = None


@dataclass(slots=True, frozen=True)
class ConnectedAccount:
    """Pro's payout destination account at the payment provider."""

    account_id: str
    charges_enabled: bool = False

    @property
    def can_receive_transfers(self) -> bool:
        return bool(self.account_id) and self.charges_enabled


@dataclass(slots=True, frozen=True)
class ProProfile:
    pro_id: str
    starting_price: Decimal | None = None
    connected_account: ConnectedAccount | None = None


@dataclass(slots=True)
class BookingPatch:
    """Column changes written by one conditional update.

    Only fields that are not ``None`` are written. ``history_entry`` is appended
    to the status history in the same transaction as the row update.
    """

    status: BookingStatus | None = None
    history_entry: StatusHistoryEntry | None = None
    timestamps: dict[str, datetime] = field(default_factory=dict)
    price: Decimal | None = None
    payment_intent_id: str | None = None
    payment_status: PaymentStatus | None = None
    status_updated_at: datetime | None = None
    status_updated_by: str | None = None

    def column_values(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in (
            "status",
            "price",
            "payment_intent_id",
            "payment_status",
            "status_updated_at",
            "status_updated_by",
        ):
            value = getattr(self, name)
            if value is not None:
                values[name] = value
        values.update(self.timestamps)
        return values

    @property
    def is_empty(self) -> bool:
        return not self.column_values() and self.history_entry is None


@dataclass(slots=True)
class Booking:
    """Booking aggregate root.

    Example:
        ```python
        booking = Booking(id=BookingId.new(), customer_id="c1", pro_id="p1", price=Decimal("150.00"))
        patch = booking.apply_transition(BookingStatus.ACCEPTED, at=now, timestamp_field="accepted_at")
        ```
    """

    id: BookingId
    customer_id: str
    pro_id: str
    price: Decimal | None = None
    status: BookingStatus = BookingStatus.REQUESTED
    status_history: list[StatusHistoryEntry] = field(default_factory=list)
    payment_intent_id: str | None = None
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    service_date: date | None = None
    service_time: str | None = None
    address: str | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    accepted_at: datetime | None = None
    en_route_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    paid_at: datetime | None = None
    status_updated_at: datetime | None = None
    status_updated_by: str | None = None

    def __post_init__(self) -> None:
        if not self.customer_id.strip():
            raise ValueError("customer_id must not be empty")
        if not self.pro_id.strip():
            raise ValueError("pro_id must not be empty")
        if self.price is not None and self.price <= Decimal("0"):
            raise ValueError("price must be greater than zero")
        if not self.status_history:
            self.status_history.append(
                StatusHistoryEntry(status=self.status, at=self.created_at, changed_by=self.customer_id)
            )

    def is_customer(self, actor: Actor) -> bool:
        return actor.role == ActorRole.CUSTOMER and actor.user_id == self.customer_id

    def is_assigned_pro(self, actor: Actor) -> bool:
        return actor.role == ActorRole.PRO and actor.user_id == self.pro_id

    def is_party(self, actor: Actor) -> bool:
        return self.is_customer(actor) or self.is_assigned_pro(actor)

    def counterparty_of(self, actor: Actor) -> str:
        """Return the user id that should hear about an action taken by ``actor``."""
        if actor.role == ActorRole.PRO:
            return self.customer_id
        return self.pro_id

    def apply_transition(
        self,
        target: BookingStatus,
        *,
        at: datetime,
        timestamp_field: str | None = None,
        changed_by: str | None = None,
    ) -> BookingPatch:
        """Move to ``target`` and return the patch that persists the change.

        History never repeats a consecutive identical status and never goes back
        in time; first-write-only timestamps are left alone once set.
        """
        patch = BookingPatch(status=target, status_updated_at=at, status_updated_by=changed_by)
        last = self.status_history[-1] if self.status_history else None
        if last is None or last.status != target:
            entry_at = at if last is None or at >= last.at else last.at
            entry = StatusHistoryEntry(status=target, at=entry_at, changed_by=changed_by)
            self.status_history.append(entry)
            patch.history_entry = entry
        if timestamp_field is not None:
            if timestamp_field not in TIMESTAMP_FIELDS:
                raise ValueError(f"Unknown timestamp field: {timestamp_field}")
            if getattr(self, timestamp_field) is None:
                setattr(self, timestamp_field, at)
                patch.timestamps[timestamp_field] = at
        self.status = target
        self.status_updated_at = at
        self.status_updated_by = changed_by
        return patch

    def record_payment(
        self,
        *,
        payment_intent_id: str,
        payment_status: PaymentStatus,
    ) -> BookingPatch:
        """Attach the current payment intent and its derived status."""
        self.payment_intent_id = payment_intent_id
        self.payment_status = payment_status
        return BookingPatch(payment_intent_id=payment_intent_id, payment_status=payment_status)
