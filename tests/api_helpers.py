import hashlib
import hmac
import json
import time
from decimal import Decimal

from jose import jwt

from bookings_api.application import (
    AuthorizePaymentUseCase,
    ConfirmPaymentUseCase,
    CreateBookingUseCase,
    GetBookingUseCase,
    TransitionBookingUseCase,
)
from bookings_api.application.hooks import BookingNotificationHook
from bookings_api.domain.entities import Actor, ProProfile
from fakes import PRO, FakePaymentGateway, InMemoryBookingStore, SpyNotificationEmitter, StubProDirectory

JWT_SECRET = "test-jwt-secret"
WEBHOOK_SECRET = "whsec_test"


class InMemoryContainer:
    """Wires the use cases over in-memory doubles."""

    def __init__(self, payments_enabled: bool = True) -> None:
        self.session_factory = None
        self.store = InMemoryBookingStore()
        self.pro_directory = StubProDirectory(
            ProProfile(pro_id=PRO.user_id, starting_price=Decimal("150.00"))
        )
        self.gateway = FakePaymentGateway() if payments_enabled else None
        self.emitter = SpyNotificationEmitter()
        self.started = False

    async def startup(self) -> None:
        self.started = True

    async def shutdown(self) -> None:
        self.started = False

    def _hook(self) -> BookingNotificationHook:
        return BookingNotificationHook(self.emitter)

    def create_create_booking_use_case(self) -> CreateBookingUseCase:
        return CreateBookingUseCase(self.store, self.pro_directory, notification_hook=self._hook())

    def create_get_booking_use_case(self) -> GetBookingUseCase:
        return GetBookingUseCase(self.store)

    def create_transition_booking_use_case(self) -> TransitionBookingUseCase:
        return TransitionBookingUseCase(self.store, notification_hook=self._hook())

    def create_authorize_payment_use_case(self) -> AuthorizePaymentUseCase:
        return AuthorizePaymentUseCase(self.store, self.pro_directory, self.gateway)

    def create_confirm_payment_use_case(self) -> ConfirmPaymentUseCase:
        return ConfirmPaymentUseCase(self.store, notification_hook=self._hook())


def token_for(actor: Actor, secret: str = JWT_SECRET, **claims) -> str:
    payload = {"sub": actor.user_id, "role": actor.role.value, "exp": int(time.time()) + 300}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_header(actor: Actor) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(actor)}"}


def signed_webhook(event: dict, secret: str = WEBHOOK_SECRET) -> tuple[bytes, dict[str, str]]:
    """Serialize an event and sign it the way the provider does."""
    body = json.dumps(event).encode()
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode(), f"{timestamp}.".encode() + body, hashlib.sha256
    ).hexdigest()
    return body, {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


