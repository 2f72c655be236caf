from bookings_api.infrastructure.notifications.sql_notification_emitter import (
    SQLNotificationEmitter,
)

__all__ = ["SQLNotificationEmitter"]
