from bookings_api.domain.entities.booking import (
    SYSTEM_ACTOR,
    TIMESTAMP_FIELDS,
    Actor,
    Booking,
    BookingPatch,
    ConnectedAccount,
    ProProfile,
    StatusHistoryEntry,
)

__all__ = [
    "SYSTEM_ACTOR",
    "TIMESTAMP_FIELDS",
    "Actor",
    "Booking",
    "BookingPatch",
    "ConnectedAccount",
    "ProProfile",
    "StatusHistoryEntry",
]
