from bookings_api.application.ports import BookingStore
from bookings_api.domain.entities import Actor, Booking
from bookings_api.domain.errors import BookingForbiddenError, BookingNotFoundError
from bookings_api.domain.value_objects import BookingId


class GetBookingUseCase:
    """Read a booking on behalf of one of its two parties."""

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    async def execute(self, booking_id: BookingId, actor: Actor) -> Booking:
        booking = await self._store.get(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking not found for id={booking_id.value}")
        if not booking.is_party(actor):
            raise BookingForbiddenError(
                "Actor is not a party to this booking",
                current_status=booking.status,
            )
        return booking
