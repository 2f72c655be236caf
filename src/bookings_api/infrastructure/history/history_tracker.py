from datetime import UTC, datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from bookings_api.domain.entities import StatusHistoryEntry
from bookings_api.infrastructure.db.models import BookingStatusHistoryModel


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes returned by drivers that drop the offset."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class HistoryTracker:
    """Append and read booking status history rows.

    Rows are only ever inserted; callers pass the session of the transaction
    that changed the booking so both writes commit or roll back together.
    """

    async def track_status_change(
        self,
        *,
        session: AsyncSession,
        booking_id: str,
        entry: StatusHistoryEntry,
    ) -> None:
        """Store a status entry in the current transaction."""
        session.add(
            BookingStatusHistoryModel(
                booking_id=booking_id,
                status=entry.status,
                changed_at=entry.at,
                changed_by=entry.changed_by,
            )
        )

    async def get_history(self, session: AsyncSession, booking_id: str) -> list[StatusHistoryEntry]:
        """Return status history for a booking in insertion order."""
        result = await session.exec(
            select(BookingStatusHistoryModel)
            .where(BookingStatusHistoryModel.booking_id == booking_id)
            .order_by(BookingStatusHistoryModel.id)
        )
        return [
            StatusHistoryEntry(
                status=row.status,
                at=as_utc(row.changed_at),
                changed_by=row.changed_by,
            )
            for row in result.all()
        ]
