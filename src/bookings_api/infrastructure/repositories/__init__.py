from bookings_api.infrastructure.repositories.sql_booking_store import SQLBookingStore
from bookings_api.infrastructure.repositories.sql_pro_directory import SQLProDirectory

__all__ = ["SQLBookingStore", "SQLProDirectory"]
