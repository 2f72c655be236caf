from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy import Enum as SAEnum
from sqlmodel import Column, Field, SQLModel

from bookings_api.domain.enums import BookingStatus, PaymentStatus


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def booking_status_type() -> SAEnum:
    return SAEnum(
        BookingStatus,
        name="booking_status",
        native_enum=False,
        length=32,
        values_callable=_enum_values,
    )


class ServiceProModel(SQLModel, table=True):
    __tablename__ = "service_pros"

    pro_id: str = Field(sa_column=Column(String(64), primary_key=True))
    display_name: str | None = Field(default=None, sa_column=Column(String(120), nullable=True))
    starting_price: Decimal | None = Field(default=None, sa_column=Column(Numeric(10, 2)))
    stripe_account_id: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True)
    )
    stripe_charges_enabled: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, default=False)
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
    )


class BookingModel(SQLModel, table=True):
    __tablename__ = "bookings"

    id: str = Field(sa_column=Column(String(36), primary_key=True))
    customer_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    pro_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    price: Decimal | None = Field(default=None, sa_column=Column(Numeric(10, 2)))
    status: BookingStatus = Field(
        sa_column=Column(
            booking_status_type(),
            nullable=False,
            default=BookingStatus.REQUESTED,
            index=True,
        )
    )
    payment_intent_id: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True, index=True)
    )
    payment_status: PaymentStatus = Field(
        sa_column=Column(
            SAEnum(
                PaymentStatus,
                name="payment_status",
                native_enum=False,
                length=32,
                values_callable=_enum_values,
            ),
            nullable=False,
            default=PaymentStatus.UNPAID,
        )
    )
    service_date: date | None = Field(default=None, sa_column=Column(Date, nullable=True))
    service_time: str | None = Field(default=None, sa_column=Column(String(20), nullable=True))
    address: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    notes: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
    )
    accepted_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    en_route_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    started_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    completed_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    cancelled_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    paid_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    status_updated_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    status_updated_by: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True)
    )


class BookingStatusHistoryModel(SQLModel, table=True):
    __tablename__ = "booking_status_history"

    id: int | None = Field(default=None, primary_key=True)
    booking_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    status: BookingStatus = Field(
        sa_column=Column(booking_status_type(), nullable=False)
    )
    changed_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
    )
    changed_by: str | None = Field(default=None, sa_column=Column(String(64), nullable=True))


class NotificationModel(SQLModel, table=True):
    __tablename__ = "notifications"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    type: str = Field(sa_column=Column(String(40), nullable=False))
    title: str | None = Field(default=None, sa_column=Column(String(120), nullable=True))
    body: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    booking_id: str | None = Field(default=None, sa_column=Column(String(36), nullable=True, index=True))
    deep_link: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    payload: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    read: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            index=True,
        ),
    )
