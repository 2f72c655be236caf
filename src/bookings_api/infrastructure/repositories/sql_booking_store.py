import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from bookings_api.domain.entities import Booking, BookingPatch
from bookings_api.domain.enums import BookingStatus
from bookings_api.domain.value_objects import BookingId
from bookings_api.infrastructure.db.bounded import bounded_store_call
from bookings_api.infrastructure.db.models import BookingModel
from bookings_api.infrastructure.history import HistoryTracker, as_utc

logger = logging.getLogger(__name__)


class SQLBookingStore:
    """Booking persistence with compare-and-set status updates.

    Every call runs under ``asyncio.timeout``; a timeout or a lost connection
    surfaces as ``BookingStoreUnavailableError``.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds
        self._history_tracker = HistoryTracker()

    async def get(self, booking_id: BookingId) -> Booking | None:
        async with bounded_store_call("get", self._timeout_seconds):
            async with self._session_factory() as session:
                result = await session.exec(
                    select(BookingModel).where(BookingModel.id == booking_id.value)
                )
                model = result.one_or_none()
                if model is None:
                    return None
                history = await self._history_tracker.get_history(session, booking_id.value)
                booking = self._to_domain(model)
                if history:
                    booking.status_history = history
                return booking

    async def create(self, booking: Booking) -> Booking:
        async with bounded_store_call("create", self._timeout_seconds):
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(self._to_model(booking))
                    await session.flush()
                    for entry in booking.status_history:
                        await self._history_tracker.track_status_change(
                            session=session,
                            booking_id=booking.id.value,
                            entry=entry,
                        )
        return booking

    async def conditional_update(
        self,
        booking_id: BookingId,
        expected_status: BookingStatus,
        patch: BookingPatch,
    ) -> int:
        """Apply ``patch`` only while the row still has ``expected_status``.

        Returns the number of rows matched. The history entry is inserted in
        the same transaction and only when exactly one row matched.
        """
        values = patch.column_values()
        if not values and patch.history_entry is None:
            return 1

        async with bounded_store_call("conditional_update", self._timeout_seconds):
            async with self._session_factory() as session:
                async with session.begin():
                    statement = (
                        update(BookingModel)
                        .where(BookingModel.id == booking_id.value)
                        .where(BookingModel.status == expected_status)
                        .values(**(values or {"status": expected_status}))
                    )
                    result = await session.execute(statement)
                    affected = result.rowcount
                    if affected == 1 and patch.history_entry is not None:
                        await self._history_tracker.track_status_change(
                            session=session,
                            booking_id=booking_id.value,
                            entry=patch.history_entry,
                        )
        if affected != 1:
            logger.info(
                "conditional_update_missed booking_id=%s expected_status=%s",
                booking_id.value,
                expected_status.value,
            )
        return affected

    @staticmethod
    def _to_model(booking: Booking) -> BookingModel:
        return BookingModel(
            id=booking.id.value,
            customer_id=booking.customer_id,
            pro_id=booking.pro_id,
            price=booking.price,
            status=booking.status,
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
            status_updated_at=booking.status_updated_at,
            status_updated_by=booking.status_updated_by,
        )

    @staticmethod
    def _to_domain(model: BookingModel) -> Booking:
        return Booking(
            id=BookingId(model.id),
            customer_id=model.customer_id,
            pro_id=model.pro_id,
            price=model.price,
            status=model.status,
            payment_intent_id=model.payment_intent_id,
            payment_status=model.payment_status,
            service_date=model.service_date,
            service_time=model.service_time,
            address=model.address,
            notes=model.notes,
            created_at=as_utc(model.created_at),
            accepted_at=as_utc(model.accepted_at),
            en_route_at=as_utc(model.en_route_at),
            started_at=as_utc(model.started_at),
            completed_at=as_utc(model.completed_at),
            cancelled_at=as_utc(model.cancelled_at),
            paid_at=as_utc(model.paid_at),
            status_updated_at=as_utc(model.status_updated_at),
            status_updated_by=model.status_updated_by,
        )
