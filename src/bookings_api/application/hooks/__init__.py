from bookings_api.application.hooks.booking_notification_hook import (
    BookingNotificationHook,
    NotificationTemplate,
    customer_deep_link,
    pro_deep_link,
)

__all__ = [
    "BookingNotificationHook",
    "NotificationTemplate",
    "customer_deep_link",
    "pro_deep_link",
]
