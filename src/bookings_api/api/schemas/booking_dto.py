from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from bookings_api.domain.entities import Booking
from bookings_api.domain.enums import BookingStatus, PaymentStatus


class ErrorResponseDTO(BaseModel):
    """Standard error payload for API failures."""

    error: str
    message: str
    code: str
    request_id: str | None = None
    current_status: str | None = None


class CreateBookingRequestDTO(BaseModel):
    """Request body for `POST /api/v1/bookings`."""

    model_config = ConfigDict(extra="forbid")

    pro_id: str = Field(min_length=1, max_length=64, examples=["pro-7f3c"])
    service_date: date | None = None
    service_time: str | None = Field(default=None, max_length=20, examples=["09:30"])
    address: str | None = Field(default=None, max_length=255, examples=["12 Elm St, Springfield"])
    notes: str | None = Field(default=None, max_length=2000)


class CompleteBookingRequestDTO(BaseModel):
    """Optional body for `POST /api/v1/bookings/{id}/complete`."""

    model_config = ConfigDict(extra="forbid")

    final_price: Decimal | None = Field(
        default=None, gt=Decimal("0"), decimal_places=2, examples=["175.00"]
    )


class BookingStatusUpdateDTO(BaseModel):
    """Request body for `PATCH /api/v1/bookings/{id}/status`."""

    model_config = ConfigDict(extra="forbid")

    next_status: Literal["ACCEPTED", "ON_THE_WAY", "IN_PROGRESS", "COMPLETED"]
    final_price: Decimal | None = Field(default=None, gt=Decimal("0"), decimal_places=2)


class StatusHistoryEntryDTO(BaseModel):
    status: BookingStatus
    at: datetime
    changed_by: str | None = None


class BookingResponseDTO(BaseModel):
    """Booking as seen by either party.

    Deprecated status aliases are reported under their canonical name.
    """

    id: str
    customer_id: str
    pro_id: str
    status: BookingStatus
    price: Decimal | None
    payment_intent_id: str | None
    payment_status: PaymentStatus
    service_date: date | None
    service_time: str | None
    address: str | None
    notes: str | None
    created_at: datetime
    accepted_at: datetime | None
    en_route_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    paid_at: datetime | None
    status_history: list[StatusHistoryEntryDTO] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, booking: Booking) -> BookingResponseDTO:
        return cls(
            id=booking.id.value,
            customer_id=booking.customer_id,
            pro_id=booking.pro_id,
            status=booking.status.canonical,
            price=booking.price,
            payment_intent_id=booking.payment_intent_id,
            payment_status=booking.payment_status,
            service_date=booking.service_date,
            service_time=booking.service_time,
            address=booking.address,
            notes=booking.notes,
            created_at=booking.created_at,
            accepted_at=booking.accepted_at,
            en_route_at=booking.en_route_at,
            started_at=booking.started_at,
            completed_at=booking.completed_at,
            cancelled_at=booking.cancelled_at,
            paid_at=booking.paid_at,
            status_history=[
                StatusHistoryEntryDTO(
                    status=entry.status.canonical,
                    at=entry.at,
                    changed_by=entry.changed_by,
                )
                for entry in booking.status_history
            ],
        )


class PaymentAuthorizationResponseDTO(BaseModel):
    """Client confirmation details for the booking's payment intent."""

    booking_id: str
    payment_intent_id: str
    client_secret: str | None
    intent_status: str
    payment_status: PaymentStatus
    amount: int = Field(description="Charge amount in minor units")
    application_fee_amount: int | None = None
    transfer_destination: str | None = None
    reused: bool


class WebhookAckDTO(BaseModel):
    received: bool = True
    ignored: bool = False
