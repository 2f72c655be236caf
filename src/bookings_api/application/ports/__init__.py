from bookings_api.domain.ports import (
    BookingStore,
    NotificationEmitter,
    PaymentGateway,
    PaymentIntent,
    PaymentIntentRequest,
    PaymentResult,
    ProDirectory,
)

__all__ = [
    "BookingStore",
    "NotificationEmitter",
    "PaymentGateway",
    "PaymentIntent",
    "PaymentIntentRequest",
    "PaymentResult",
    "ProDirectory",
]
