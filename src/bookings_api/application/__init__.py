from bookings_api.application.use_cases import (
    AuthorizePaymentRequest,
    AuthorizePaymentUseCase,
    ConfirmPaymentUseCase,
    CreateBookingPersistenceError,
    CreateBookingRequest,
    CreateBookingUseCase,
    GetBookingUseCase,
    PaymentAuthorization,
    PaymentEvent,
    PaymentPurpose,
    TransitionBookingRequest,
    TransitionBookingUseCase,
)

__all__ = [
    "AuthorizePaymentRequest",
    "AuthorizePaymentUseCase",
    "ConfirmPaymentUseCase",
    "CreateBookingPersistenceError",
    "CreateBookingRequest",
    "CreateBookingUseCase",
    "GetBookingUseCase",
    "PaymentAuthorization",
    "PaymentEvent",
    "PaymentPurpose",
    "TransitionBookingRequest",
    "TransitionBookingUseCase",
]
