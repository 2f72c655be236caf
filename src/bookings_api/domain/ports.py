from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from bookings_api.domain.entities import Booking, BookingPatch, ProProfile
from bookings_api.domain.enums import BookingStatus
from bookings_api.domain.value_objects import BookingId

CaptureMethod = Literal["automatic", "manual"]


@dataclass(slots=True, frozen=True)
class PaymentIntent:
    id: str
    status: str
    amount: int
    client_secret: str | None = None
    application_fee_amount: int | None = None
    transfer_destination: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    capture_method: str | None = None


@dataclass(slots=True, frozen=True)
class PaymentIntentRequest:
    amount: int
    currency: str
    capture_method: CaptureMethod
    metadata: dict[str, str]
    idempotency_key: str
    application_fee_amount: int | None = None
    transfer_destination: str | None = None


@dataclass(slots=True, frozen=True)
class PaymentResult:
    success: bool
    status: str
    intent: PaymentIntent | None = None
    error_message: str | None = None


class BookingStore(Protocol):
    async def get(self, booking_id: BookingId) -> Booking | None: ...

    async def create(self, booking: Booking) -> Booking: ...

    async def conditional_update(
        self,
        booking_id: BookingId,
        expected_status: BookingStatus,
        patch: BookingPatch,
    ) -> int: ...


class ProDirectory(Protocol):
    async def get_pro(self, pro_id: str) -> ProProfile | None: ...


class PaymentGateway(Protocol):
    async def create_intent(self, request: PaymentIntentRequest) -> PaymentResult: ...

    async def retrieve_intent(self, intent_id: str) -> PaymentResult: ...

    async def capture_intent(self, intent_id: str) -> PaymentResult: ...

    async def cancel_intent(self, intent_id: str) -> PaymentResult: ...


class NotificationEmitter(Protocol):
    async def emit(self, user_id: str, type: str, payload: dict[str, Any]) -> None: ...
