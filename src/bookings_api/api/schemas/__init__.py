from bookings_api.api.schemas.booking_dto import (
    BookingResponseDTO,
    BookingStatusUpdateDTO,
    CompleteBookingRequestDTO,
    CreateBookingRequestDTO,
    ErrorResponseDTO,
    PaymentAuthorizationResponseDTO,
    StatusHistoryEntryDTO,
    WebhookAckDTO,
)

__all__ = [
    "BookingResponseDTO",
    "BookingStatusUpdateDTO",
    "CompleteBookingRequestDTO",
    "CreateBookingRequestDTO",
    "ErrorResponseDTO",
    "PaymentAuthorizationResponseDTO",
    "StatusHistoryEntryDTO",
    "WebhookAckDTO",
]
