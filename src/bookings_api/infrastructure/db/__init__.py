from bookings_api.infrastructure.db.models import (
    BookingModel,
    BookingStatusHistoryModel,
    NotificationModel,
    ServiceProModel,
)

__all__ = [
    "BookingModel",
    "BookingStatusHistoryModel",
    "NotificationModel",
    "ServiceProModel",
]
