from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from bookings_api.domain.entities import ConnectedAccount, ProProfile
from bookings_api.infrastructure.db.bounded import bounded_store_call
from bookings_api.infrastructure.db.models import ServiceProModel


class SQLProDirectory:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds

    async def get_pro(self, pro_id: str) -> ProProfile | None:
        async with bounded_store_call("get_pro", self._timeout_seconds):
            async with self._session_factory() as session:
                result = await session.exec(
                    select(ServiceProModel).where(ServiceProModel.pro_id == pro_id)
                )
                model = result.one_or_none()
        if model is None:
            return None
        account = None
        if model.stripe_account_id:
            account = ConnectedAccount(
                account_id=model.stripe_account_id,
                charges_enabled=model.stripe_charges_enabled,
            )
        return ProProfile(
            pro_id=model.pro_id,
            starting_price=model.starting_price,
            connected_account=account,
        )
