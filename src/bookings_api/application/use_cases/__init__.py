from bookings_api.application.use_cases.authorize_payment_use_case import (
    AuthorizePaymentRequest,
    AuthorizePaymentUseCase,
    PaymentAuthorization,
    PaymentPurpose,
)
from bookings_api.application.use_cases.confirm_payment_use_case import (
    PAYMENT_FAILED,
    PAYMENT_REQUIRES_ACTION,
    PAYMENT_SUCCEEDED,
    ConfirmPaymentUseCase,
    PaymentEvent,
)
from bookings_api.application.use_cases.create_booking_use_case import (
    CreateBookingPersistenceError,
    CreateBookingRequest,
    CreateBookingUseCase,
)
from bookings_api.application.use_cases.get_booking_use_case import GetBookingUseCase
from bookings_api.application.use_cases.transition_booking_use_case import (
    TransitionBookingRequest,
    TransitionBookingUseCase,
)

__all__ = [
    "PAYMENT_FAILED",
    "PAYMENT_REQUIRES_ACTION",
    "PAYMENT_SUCCEEDED",
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
