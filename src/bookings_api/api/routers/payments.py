import json
import logging
from typing import Annotated, Any

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status

from bookings_api.api.dependencies import get_settings
from bookings_api.api.schemas import ErrorResponseDTO, WebhookAckDTO
from bookings_api.application import ConfirmPaymentUseCase, PaymentEvent
from bookings_api.application.use_cases.confirm_payment_use_case import HANDLED_EVENT_TYPES
from bookings_api.domain.errors import BookingNotFoundError, PaymentServiceUnavailableError
from bookings_api.domain.value_objects import BookingId
from bookings_api.shared.config.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def get_confirm_payment_use_case(request: Request) -> ConfirmPaymentUseCase:
    factory = getattr(request.app.state, "confirm_payment_use_case_factory", None)
    if factory is None:
        raise RuntimeError("Application not started: missing confirm_payment_use_case_factory")
    return factory()


def verify_event(payload: bytes, signature: str | None, app_settings: Settings) -> dict[str, Any]:
    """Verify the provider signature and return the event as plain JSON.

    ``construct_event`` only authenticates the payload; the body is read with
    ``json`` so handling does not depend on how the installed stripe release
    models its objects.
    """
    if not app_settings.stripe_webhook_secret:
        raise PaymentServiceUnavailableError("Payment webhook secret is not configured")
    if not signature:
        logger.warning("payment_webhook_missing_signature")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No signature")
    try:
        stripe.Webhook.construct_event(payload, signature, app_settings.stripe_webhook_secret)
        event = json.loads(payload)
    except stripe.SignatureVerificationError:
        logger.warning("payment_webhook_invalid_signature")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    return event


def to_payment_event(event: dict[str, Any]) -> PaymentEvent | None:
    """Extract the booking-scoped payment event, or ``None`` for events we do not handle."""
    event_type = event.get("type")
    if event_type not in HANDLED_EVENT_TYPES:
        return None
    intent = (event.get("data") or {}).get("object") or {}
    metadata = intent.get("metadata") or {}
    raw_booking_id = metadata.get("booking_id")
    if not raw_booking_id or not intent.get("id"):
        logger.info("payment_webhook_without_booking payment_intent_id=%s", intent.get("id"))
        return None
    try:
        booking_id = BookingId(raw_booking_id)
    except ValueError:
        logger.warning("payment_webhook_invalid_booking_id booking_id=%s", raw_booking_id)
        return None
    return PaymentEvent(
        event_type=event_type,
        booking_id=booking_id,
        payment_intent_id=str(intent["id"]),
    )


@router.post(
    "/webhook",
    response_model=WebhookAckDTO,
    summary="Payment provider webhook",
    description="Signature-verified payment intent events; replays are acknowledged without changes.",
    responses={
        400: {"description": "Missing or invalid signature"},
        409: {"model": ErrorResponseDTO, "description": "Booking kept changing; provider should retry"},
        503: {"model": ErrorResponseDTO, "description": "Webhook not configured or store unavailable"},
    },
)
async def payment_webhook(
    request: Request,
    app_settings: Annotated[Settings, Depends(get_settings)],
    use_case: Annotated[ConfirmPaymentUseCase, Depends(get_confirm_payment_use_case)],
) -> WebhookAckDTO:
    payload = await request.body()
    event = verify_event(payload, request.headers.get("stripe-signature"), app_settings)
    payment_event = to_payment_event(event)
    if payment_event is None:
        return WebhookAckDTO(ignored=True)
    try:
        await use_case.execute(payment_event)
    except BookingNotFoundError:
        logger.warning(
            "payment_webhook_unknown_booking booking_id=%s", payment_event.booking_id.value
        )
        return WebhookAckDTO(ignored=True)
    return WebhookAckDTO()
