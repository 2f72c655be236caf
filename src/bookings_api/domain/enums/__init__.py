from bookings_api.domain.enums.actor_role import ActorRole
from bookings_api.domain.enums.booking_status import BookingStatus, PaymentStatus

__all__ = ["ActorRole", "BookingStatus", "PaymentStatus"]
