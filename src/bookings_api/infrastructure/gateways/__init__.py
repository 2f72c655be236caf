from bookings_api.infrastructure.gateways.stripe_payment_gateway import (
    StripeAPIError,
    StripePaymentGateway,
    StripeRequestError,
    StripeServerError,
)

__all__ = ["StripeAPIError", "StripePaymentGateway", "StripeRequestError", "StripeServerError"]
