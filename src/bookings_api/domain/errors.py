from bookings_api.domain.enums import BookingStatus


class BookingError(Exception):
    """Base class for booking lifecycle failures surfaced to callers."""

    code = "BOOKING_ERROR"

    def __init__(self, message: str, *, current_status: BookingStatus | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.current_status = current_status


class BookingNotFoundError(BookingError):
    code = "NOT_FOUND"


class BookingForbiddenError(BookingError):
    code = "FORBIDDEN"


class BookingConflictError(BookingError):
    """Raised for illegal transitions and for transitions lost to a concurrent writer."""

    code = "INVALID_TRANSITION"


class InvalidPaymentStateError(BookingError):
    code = "INVALID_STATE"


class InvalidPaymentAmountError(BookingError):
    code = "INVALID_AMOUNT"


class ServiceUnavailableError(BookingError):
    """Transient failure; the caller may retry."""

    code = "SERVICE_UNAVAILABLE"


class PaymentServiceUnavailableError(ServiceUnavailableError):
    code = "PAYMENT_UNAVAILABLE"


class BookingStoreUnavailableError(ServiceUnavailableError):
    code = "STORE_UNAVAILABLE"


class PaymentUpstreamError(BookingError):
    """Payment provider rejected the request; message is the provider's own."""

    code = "PAYMENT_PROVIDER_ERROR"
