import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, Protocol

from bookings_api.domain.entities import Actor, Booking
from bookings_api.domain.enums import BookingStatus, PaymentStatus
from bookings_api.domain.errors import (
    BookingConflictError,
    BookingForbiddenError,
    BookingNotFoundError,
    InvalidPaymentAmountError,
    InvalidPaymentStateError,
    PaymentServiceUnavailableError,
    PaymentUpstreamError,
)
from bookings_api.domain.ports import (
    BookingStore,
    PaymentGateway,
    PaymentIntent,
    PaymentIntentRequest,
    PaymentResult,
    ProDirectory,
)
from bookings_api.domain.pricing import DEFAULT_PLATFORM_FEE_RATE, platform_fee, to_minor_units
from bookings_api.domain.state_machine import CAPTURE_STATUSES, PRE_CAPTURE_STATUSES
from bookings_api.domain.value_objects import BookingId

logger = logging.getLogger(__name__)

TRANSIENT_PAYMENT_STATUSES = frozenset({"TIMEOUT", "CIRCUIT_OPEN", "UNAVAILABLE", "NOT_CONFIGURED"})
TERMINAL_INTENT_STATUSES = frozenset({"canceled"})
CANCELLABLE_INTENT_STATUSES = frozenset(
    {"requires_payment_method", "requires_confirmation", "requires_action", "requires_capture"}
)


class PaymentPurpose(StrEnum):
    AUTHORIZE = "authorize"
    PAY = "pay"


def payable_statuses(purpose: PaymentPurpose) -> frozenset[BookingStatus]:
    return PRE_CAPTURE_STATUSES if purpose == PaymentPurpose.AUTHORIZE else CAPTURE_STATUSES


class PaymentAuditLogger(Protocol):
    """Port for audit events emitted in the payment authorization flow."""

    def log_payment_authorized(
        self,
        *,
        booking_id: str,
        actor: str,
        context: dict[str, Any] | None = None,
    ) -> None: ...


@dataclass(slots=True, frozen=True)
class AuthorizePaymentRequest:
    booking_id: BookingId
    actor: Actor
    purpose: PaymentPurpose = PaymentPurpose.AUTHORIZE


@dataclass(slots=True, frozen=True)
class PaymentAuthorization:
    """Outcome returned to the customer for client-side confirmation."""

    booking_id: str
    payment_intent_id: str
    client_secret: str | None
    intent_status: str
    payment_status: PaymentStatus
    amount: int
    application_fee_amount: int | None = None
    transfer_destination: str | None = None
    reused: bool = False


class AuthorizePaymentUseCase:
    """Create or reuse the payment intent that funds a booking.

    The amount is always recomputed from the persisted price. An existing
    intent is reused while it is still live and for the same amount; a new one
    is created only when none exists or the previous one is gone or cancelled.
    A live intent that is replaced (different amount, or a manual-capture
    intent that was never confirmed when the final payment is due) is
    cancelled first so the customer never carries two holds.
    When the assigned pro has a connected account with charges enabled, the
    platform fee is retained and the remainder is routed to that account.
    """

    def __init__(
        self,
        store: BookingStore,
        pro_directory: ProDirectory,
        payment_gateway: PaymentGateway | None,
        audit_logger: PaymentAuditLogger | None = None,
        currency: str = "usd",
        platform_fee_rate: Decimal = DEFAULT_PLATFORM_FEE_RATE,
    ) -> None:
        self._store = store
        self._pro_directory = pro_directory
        self._payment_gateway = payment_gateway
        self._audit_logger = audit_logger
        self._currency = currency
        self._platform_fee_rate = platform_fee_rate

    async def execute(self, request: AuthorizePaymentRequest) -> PaymentAuthorization:
        """Return the client confirmation details for the booking's payment."""
        if self._payment_gateway is None:
            raise PaymentServiceUnavailableError("Payment provider is not configured")
        gateway = self._payment_gateway

        booking = await self._store.get(request.booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking not found for id={request.booking_id.value}")
        if not booking.is_customer(request.actor):
            raise BookingForbiddenError(
                "Only the booking's customer can authorize payment",
                current_status=booking.status,
            )
        self._check_state(booking, request.purpose)
        amount = self._amount_for(booking)

        intent = await self._reusable_intent(gateway, booking, request.purpose, amount)
        reused = intent is not None
        if intent is None:
            intent = await self._create_intent(gateway, booking, request.purpose, amount)

        payment_status = PaymentStatus.from_intent_status(intent.status)
        await self._persist(
            gateway, booking, intent, payment_status, purpose=request.purpose, created=not reused
        )

        if self._audit_logger is not None:
            self._audit_logger.log_payment_authorized(
                booking_id=booking.id.value,
                actor=request.actor.user_id,
                context={
                    "purpose": request.purpose.value,
                    "payment_intent_id": intent.id,
                    "intent_status": intent.status,
                    "amount": amount,
                    "reused": reused,
                },
            )
        return PaymentAuthorization(
            booking_id=booking.id.value,
            payment_intent_id=intent.id,
            client_secret=None if payment_status == PaymentStatus.PAID else intent.client_secret,
            intent_status=intent.status,
            payment_status=payment_status,
            amount=amount,
            application_fee_amount=intent.application_fee_amount,
            transfer_destination=intent.transfer_destination,
            reused=reused,
        )

    @staticmethod
    def _check_state(booking: Booking, purpose: PaymentPurpose) -> None:
        allowed = payable_statuses(purpose)
        if booking.status not in allowed:
            raise InvalidPaymentStateError(
                f"Booking is not in a state allowing {purpose.value} (status: {booking.status.value})",
                current_status=booking.status,
            )
        if booking.payment_status == PaymentStatus.PAID:
            raise InvalidPaymentStateError(
                "Booking is already paid",
                current_status=booking.status,
            )

    @staticmethod
    def _amount_for(booking: Booking) -> int:
        if booking.price is None:
            raise InvalidPaymentAmountError(
                "Booking total is not set",
                current_status=booking.status,
            )
        amount = to_minor_units(booking.price)
        if amount <= 0:
            raise InvalidPaymentAmountError(
                "Booking total must be a positive amount",
                current_status=booking.status,
            )
        return amount

    async def _reusable_intent(
        self,
        gateway: PaymentGateway,
        booking: Booking,
        purpose: PaymentPurpose,
        amount: int,
    ) -> PaymentIntent | None:
        if not booking.payment_intent_id:
            return None

        result = await gateway.retrieve_intent(booking.payment_intent_id)
        if not result.success:
            if result.status == "NOT_FOUND":
                logger.warning(
                    "payment_intent_missing booking_id=%s payment_intent_id=%s",
                    booking.id.value,
                    booking.payment_intent_id,
                )
                return None
            raise self._to_error(result, booking)

        intent = result.intent
        if intent is None or intent.status in TERMINAL_INTENT_STATUSES:
            return None
        if intent.status == "succeeded":
            return intent
        if intent.amount != amount:
            logger.info(
                "payment_intent_superseded booking_id=%s payment_intent_id=%s old_amount=%s new_amount=%s",
                booking.id.value,
                intent.id,
                intent.amount,
                amount,
            )
            await self._release(gateway, booking, intent)
            return None
        if purpose == PaymentPurpose.PAY:
            if intent.status == "requires_capture":
                captured = await gateway.capture_intent(intent.id)
                if not captured.success or captured.intent is None:
                    raise self._to_error(captured, booking)
                return captured.intent
            if intent.capture_method == "manual":
                # Confirming a manual intent only places a hold; paying needs automatic capture.
                logger.info(
                    "payment_intent_replaced_for_capture booking_id=%s payment_intent_id=%s status=%s",
                    booking.id.value,
                    intent.id,
                    intent.status,
                )
                await self._release(gateway, booking, intent)
                return None
        return intent

    async def _release(self, gateway: PaymentGateway, booking: Booking, intent: PaymentIntent) -> None:
        """Cancel a superseded intent before a replacement is created."""
        if intent.status not in CANCELLABLE_INTENT_STATUSES:
            raise PaymentServiceUnavailableError(
                "Previous payment is still being processed. Please try again.",
                current_status=booking.status,
            )
        result = await gateway.cancel_intent(intent.id)
        if result.success or result.status == "NOT_FOUND":
            return
        raise self._to_error(result, booking)

    async def _create_intent(
        self,
        gateway: PaymentGateway,
        booking: Booking,
        purpose: PaymentPurpose,
        amount: int,
    ) -> PaymentIntent:
        profile = await self._pro_directory.get_pro(booking.pro_id)
        account = profile.connected_account if profile is not None else None
        routed = account is not None and account.can_receive_transfers

        result = await gateway.create_intent(
            PaymentIntentRequest(
                amount=amount,
                currency=self._currency,
                capture_method="manual" if purpose == PaymentPurpose.AUTHORIZE else "automatic",
                metadata={
                    "booking_id": booking.id.value,
                    "customer_id": booking.customer_id,
                    "pro_id": booking.pro_id,
                },
                idempotency_key=self._idempotency_key(booking, purpose, amount),
                application_fee_amount=(
                    platform_fee(amount, self._platform_fee_rate) if routed else None
                ),
                transfer_destination=account.account_id if routed and account else None,
            )
        )
        if not result.success or result.intent is None:
            raise self._to_error(result, booking)
        return result.intent

    async def _persist(
        self,
        gateway: PaymentGateway,
        booking: Booking,
        intent: PaymentIntent,
        payment_status: PaymentStatus,
        *,
        purpose: PaymentPurpose,
        created: bool,
    ) -> None:
        if booking.payment_intent_id == intent.id and booking.payment_status == payment_status:
            return
        expected_status = booking.status
        patch = booking.record_payment(payment_intent_id=intent.id, payment_status=payment_status)
        affected = await self._store.conditional_update(
            booking_id=booking.id,
            expected_status=expected_status,
            patch=patch,
        )
        if affected != 1:
            current = await self._store.get(booking.id)
            if created and (current is None or current.status not in payable_statuses(purpose)):
                # A retry replays the same idempotency key, so only drop intents nobody can use.
                await self._discard(gateway, booking, intent)
            raise BookingConflictError(
                "Booking status changed while authorizing payment",
                current_status=current.status if current is not None else None,
            )

    @staticmethod
    async def _discard(gateway: PaymentGateway, booking: Booking, intent: PaymentIntent) -> None:
        """Cancel an intent that could not be recorded on the booking."""
        result = await gateway.cancel_intent(intent.id)
        if not result.success:
            logger.warning(
                "payment_intent_orphaned booking_id=%s payment_intent_id=%s status=%s",
                booking.id.value,
                intent.id,
                result.status,
            )

    @staticmethod
    def _idempotency_key(booking: Booking, purpose: PaymentPurpose, amount: int) -> str:
        previous = booking.payment_intent_id or "initial"
        return f"booking:{booking.id.value}:{purpose.value}:{previous}:{amount}"

    @staticmethod
    def _to_error(result: PaymentResult, booking: Booking) -> Exception:
        if result.status in TRANSIENT_PAYMENT_STATUSES:
            return PaymentServiceUnavailableError(
                "Payment provider is unavailable. Please try again.",
                current_status=booking.status,
            )
        return PaymentUpstreamError(
            result.error_message or "Payment provider rejected the request",
            current_status=booking.status,
        )
