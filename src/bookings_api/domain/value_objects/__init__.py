from bookings_api.domain.value_objects.booking_id import BookingId

__all__ = ["BookingId"]
