from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from bookings_api.infrastructure.db.bounded import bounded_store_call
from bookings_api.infrastructure.db.models import NotificationModel


class SQLNotificationEmitter:
    """Store notifications as durable rows for the recipient's inbox.

    The insert is bounded like every other store call, so a stalled database
    cannot hold the response of a transition that has already committed.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds

    async def emit(self, user_id: str, type: str, payload: dict[str, Any]) -> None:
        async with bounded_store_call("emit_notification", self._timeout_seconds):
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        NotificationModel(
                            user_id=user_id,
                            type=type,
                            title=payload.get("title"),
                            body=payload.get("body"),
                            booking_id=payload.get("booking_id"),
                            deep_link=payload.get("deep_link"),
                            payload=dict(payload),
                        )
                    )
