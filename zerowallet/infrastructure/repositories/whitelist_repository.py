"""PostgreSQL implementation of WhitelistRepository."""

from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from zerowallet.domain.interfaces import WhitelistRepository
from zerowallet.infrastructure.database import DatabaseSessionManager
from zerowallet.infrastructure.database.models import ContractWhitelistModel

from .errors import store_errors


class PostgresWhitelistRepository(WhitelistRepository):
    """PostgreSQL-backed contract whitelist repository."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def contains(self, gas_tank_id: int, address: str) -> bool:
        async with store_errors("check_whitelist", f"{gas_tank_id}/{address}"):
            async with self._db.session() as session:
                result = await session.execute(
                    select(ContractWhitelistModel.id).where(
                        ContractWhitelistModel.gas_tank_id == gas_tank_id,
                        ContractWhitelistModel.address == address,
                    )
                )
                return result.first() is not None

    async def add(self, gas_tank_id: int, address: str) -> bool:
        """Insert the entry; a concurrent duplicate counts as already present."""
        async with store_errors("add_to_whitelist", f"{gas_tank_id}/{address}"):
            try:
                async with self._db.session() as session:
                    session.add(
                        ContractWhitelistModel(gas_tank_id=gas_tank_id, address=address)
                    )
                    await session.flush()
                    return True
            except IntegrityError:
                if await self.contains(gas_tank_id, address):
                    return False
                raise

    async def remove(self, gas_tank_id: int, address: str) -> bool:
        async with store_errors("remove_from_whitelist", f"{gas_tank_id}/{address}"):
            async with self._db.session() as session:
                result = await session.execute(
                    delete(ContractWhitelistModel).where(
                        ContractWhitelistModel.gas_tank_id == gas_tank_id,
                        ContractWhitelistModel.address == address,
                    )
                )
                return result.rowcount > 0

    async def list_addresses(self, gas_tank_id: int) -> List[str]:
        async with store_errors("list_whitelist", str(gas_tank_id)):
            async with self._db.session() as session:
                result = await session.execute(
                    select(ContractWhitelistModel.address)
                    .where(ContractWhitelistModel.gas_tank_id == gas_tank_id)
                    .order_by(ContractWhitelistModel.id)
                )
                return list(result.scalars().all())
