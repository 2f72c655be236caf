from bookings_api.domain.entities import (
    SYSTEM_ACTOR,
    Actor,
    Booking,
    BookingPatch,
    ConnectedAccount,
    ProProfile,
    StatusHistoryEntry,
)
from bookings_api.domain.enums import ActorRole, BookingStatus, PaymentStatus
from bookings_api.domain.ports import (
    BookingStore,
    NotificationEmitter,
    PaymentGateway,
    PaymentIntent,
    PaymentIntentRequest,
    PaymentResult,
    ProDirectory,
)
from bookings_api.domain.state_machine import BookingOperation, TransitionRule
from bookings_api.domain.value_objects import BookingId

__all__ = [
    "SYSTEM_ACTOR",
    "Actor",
    "ActorRole",
    "Booking",
    "BookingId",
    "BookingOperation",
    "BookingPatch",
    "BookingStatus",
    "BookingStore",
    "ConnectedAccount",
    "NotificationEmitter",
    "PaymentGateway",
    "PaymentIntent",
    "PaymentIntentRequest",
    "PaymentResult",
    "PaymentStatus",
    "ProDirectory",
    "ProProfile",
    "StatusHistoryEntry",
    "TransitionRule",
]
