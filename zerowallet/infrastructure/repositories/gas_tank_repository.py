"""PostgreSQL implementation of GasTankRepository."""

from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from zerowallet.domain.entities import GasTankDetails, NewGasTank
from zerowallet.domain.exceptions import (
    DuplicateChainIdException,
    ProjectNotFoundException,
)
from zerowallet.domain.interfaces import GasTankRepository
from zerowallet.infrastructure.database import DatabaseSessionManager
from zerowallet.infrastructure.database.models import (
    ContractWhitelistModel,
    GasTankModel,
    GaslessLoginModel,
    ProjectModel,
)

from .errors import as_utc, store_errors


class PostgresGasTankRepository(GasTankRepository):
    """PostgreSQL-backed gas tank repository."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create(self, gas_tank: NewGasTank) -> GasTankDetails:
        """Insert the gas tank row and bulk insert its whitelist in one transaction."""
        entity_key = f"{gas_tank.project_id}/{gas_tank.chain_id}"

        async with store_errors("create_gas_tank", entity_key):
            try:
                async with self._db.session() as session:
                    model = self._to_model(gas_tank)
                    session.add(model)
                    await session.flush()
                    return self._to_entity(model)
            except IntegrityError as e:
                if await self.get_by_chain(gas_tank.project_id, gas_tank.chain_id):
                    raise DuplicateChainIdException(
                        gas_tank.project_id, gas_tank.chain_id
                    ) from e
                if not await self._project_exists(gas_tank.project_id):
                    raise ProjectNotFoundException(gas_tank.project_id) from e
                raise

    async def replace_for_project(
        self,
        project_id: str,
        gas_tanks: Sequence[NewGasTank],
    ) -> List[GasTankDetails]:
        """Swap a project's whole gas tank set in a single transaction."""
        tank_ids = select(GasTankModel.gas_tank_id).where(
            GasTankModel.project_id == project_id
        )

        async with store_errors("replace_gas_tanks", project_id):
            async with self._db.session() as session:
                await session.execute(
                    delete(GaslessLoginModel).where(
                        GaslessLoginModel.gas_tank_id.in_(tank_ids)
                    )
                )
                await session.execute(
                    delete(ContractWhitelistModel).where(
                        ContractWhitelistModel.gas_tank_id.in_(tank_ids)
                    )
                )
                await session.execute(
                    delete(GasTankModel).where(GasTankModel.project_id == project_id)
                )

                models = [self._to_model(gas_tank) for gas_tank in gas_tanks]
                session.add_all(models)
                await session.flush()

                return [self._to_entity(model) for model in models]

    async def get_by_chain(
        self,
        project_id: str,
        chain_id: int,
    ) -> Optional[GasTankDetails]:
        async with store_errors("get_gas_tank", f"{project_id}/{chain_id}"):
            async with self._db.session() as session:
                result = await session.execute(
                    select(GasTankModel).where(
                        GasTankModel.project_id == project_id,
                        GasTankModel.chain_id == chain_id,
                    )
                )
                model = result.scalar_one_or_none()

        return self._to_entity(model) if model else None

    async def list_by_project(self, project_id: str) -> List[GasTankDetails]:
        async with store_errors("list_gas_tanks", project_id):
            async with self._db.session() as session:
                result = await session.execute(
                    select(GasTankModel)
                    .where(GasTankModel.project_id == project_id)
                    .order_by(GasTankModel.chain_id)
                )
                models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def list_with_whitelist(
        self,
        project_id: str,
    ) -> List[Tuple[GasTankDetails, List[str]]]:
        async with store_errors("list_gas_tanks_with_whitelist", project_id):
            async with self._db.session() as session:
                result = await session.execute(
                    select(GasTankModel)
                    .options(selectinload(GasTankModel.whitelist))
                    .where(GasTankModel.project_id == project_id)
                    .order_by(GasTankModel.chain_id)
                )
                models = result.scalars().all()

                return [
                    (
                        self._to_entity(model),
                        [entry.address for entry in model.whitelist],
                    )
                    for model in models
                ]

    async def update_provider_url(self, gas_tank_id: int, provider_url: str) -> bool:
        async with store_errors("update_provider_url", str(gas_tank_id)):
            async with self._db.session() as session:
                result = await session.execute(
                    update(GasTankModel)
                    .where(GasTankModel.gas_tank_id == gas_tank_id)
                    .values(provider_url=provider_url)
                )
                return result.rowcount > 0

    async def _project_exists(self, project_id: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                select(ProjectModel.project_id).where(
                    ProjectModel.project_id == project_id
                )
            )
            return result.first() is not None

    def _to_model(self, gas_tank: NewGasTank) -> GasTankModel:
        model = GasTankModel(
            api_key=gas_tank.api_key,
            project_id=gas_tank.project_id,
            chain_id=gas_tank.chain_id,
            provider_url=gas_tank.provider_url,
            funding_key=gas_tank.funding_key,
            created_at=gas_tank.created_at,
        )
        # dict.fromkeys drops duplicates while keeping order
        model.whitelist = [
            ContractWhitelistModel(address=address)
            for address in dict.fromkeys(gas_tank.whitelist)
        ]
        return model

    def _to_entity(self, model: GasTankModel) -> GasTankDetails:
        return GasTankDetails(
            gas_tank_id=model.gas_tank_id,
            project_id=model.project_id,
            chain_id=model.chain_id,
            provider_url=model.provider_url,
            api_key=model.api_key,
            funding_key=model.funding_key,
            created_at=as_utc(model.created_at),
        )
