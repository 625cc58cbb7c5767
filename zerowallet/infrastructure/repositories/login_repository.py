"""PostgreSQL implementation of LoginRepository."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from zerowallet.domain.entities import GaslessLogin
from zerowallet.domain.exceptions import AlreadyRegisteredException
from zerowallet.domain.interfaces import LoginRepository
from zerowallet.infrastructure.database import DatabaseSessionManager
from zerowallet.infrastructure.database.models import GaslessLoginModel

from .errors import store_errors


class PostgresLoginRepository(LoginRepository):
    """
    PostgreSQL implementation of the gasless login repository.

    Expiration is stored as integer epoch seconds.
    """

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def get(self, gas_tank_id: int, address: str) -> Optional[GaslessLogin]:
        async with store_errors("get_login", f"{gas_tank_id}/{address}"):
            async with self._db.session() as session:
                result = await session.execute(
                    select(GaslessLoginModel).where(
                        GaslessLoginModel.gas_tank_id == gas_tank_id,
                        GaslessLoginModel.address == address,
                    )
                )
                model = result.scalar_one_or_none()

        return self._to_entity(model) if model else None

    async def create(self, login: GaslessLogin) -> GaslessLogin:
        async with store_errors("create_login", f"{login.gas_tank_id}/{login.address}"):
            try:
                async with self._db.session() as session:
                    session.add(
                        GaslessLoginModel(
                            gas_tank_id=login.gas_tank_id,
                            address=login.address,
                            nonce=login.nonce,
                            expiration=int(login.expires_at.timestamp()),
                        )
                    )
                    await session.flush()
            except IntegrityError as e:
                if await self.get(login.gas_tank_id, login.address):
                    raise AlreadyRegisteredException(login.address) from e
                raise

        return login

    async def replace_nonce(
        self,
        gas_tank_id: int,
        address: str,
        nonce: str,
        expires_at: datetime,
    ) -> bool:
        async with store_errors("refresh_login", f"{gas_tank_id}/{address}"):
            async with self._db.session() as session:
                result = await session.execute(
                    update(GaslessLoginModel)
                    .where(
                        GaslessLoginModel.gas_tank_id == gas_tank_id,
                        GaslessLoginModel.address == address,
                    )
                    .values(nonce=nonce, expiration=int(expires_at.timestamp()))
                )
                return result.rowcount > 0

    async def delete(self, gas_tank_id: int, address: str) -> bool:
        async with store_errors("delete_login", f"{gas_tank_id}/{address}"):
            async with self._db.session() as session:
                result = await session.execute(
                    delete(GaslessLoginModel).where(
                        GaslessLoginModel.gas_tank_id == gas_tank_id,
                        GaslessLoginModel.address == address,
                    )
                )
                return result.rowcount > 0

    def _to_entity(self, model: GaslessLoginModel) -> GaslessLogin:
        """Convert database model to domain entity."""
        return GaslessLogin(
            gas_tank_id=model.gas_tank_id,
            address=model.address,
            nonce=model.nonce,
            expires_at=datetime.fromtimestamp(model.expiration, tz=timezone.utc),
        )
