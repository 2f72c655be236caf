from bookings_api.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    booking_error_response,
    validation_exception_handler,
)
from bookings_api.api.middleware.https_enforcer import HTTPSEnforcerMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
    "HTTPSEnforcerMiddleware",
    "booking_error_response",
    "validation_exception_handler",
]
