"""PostgreSQL implementation of ProjectRepository."""

from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from zerowallet.domain.entities import ProjectDetails
from zerowallet.domain.exceptions import (
    DuplicateNameException,
    DuplicateResourceException,
)
from zerowallet.domain.interfaces import ProjectRepository
from zerowallet.infrastructure.database import DatabaseSessionManager
from zerowallet.infrastructure.database.models import (
    ContractWhitelistModel,
    GasTankModel,
    GaslessLoginModel,
    ProjectModel,
)

from .errors import as_utc, store_errors


class PostgresProjectRepository(ProjectRepository):
    """
    PostgreSQL implementation of the Project repository.

    Each operation runs in its own session taken from the shared manager.
    """

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create(self, project: ProjectDetails) -> ProjectDetails:
        """Persist a project, translating unique violations."""
        async with store_errors("create_project", project.project_id):
            try:
                async with self._db.session() as session:
                    session.add(
                        ProjectModel(
                            project_id=project.project_id,
                            project_api_key=project.api_key,
                            name=project.name,
                            owner_address=project.owner_address,
                            allowed_origins=list(project.allowed_origins),
                            created_at=project.created_at,
                        )
                    )
                    await session.flush()
            except IntegrityError as e:
                if await self._name_taken(project.owner_address, project.name):
                    raise DuplicateNameException(
                        project.owner_address, project.name
                    ) from e
                raise DuplicateResourceException(
                    message=f"Project id or api key already in use: {project.project_id}",
                    code="DUPLICATE_PROJECT",
                ) from e

        return project

    async def get_by_id(self, project_id: str) -> Optional[ProjectDetails]:
        """Retrieve a project by id."""
        async with store_errors("get_project", project_id):
            async with self._db.session() as session:
                result = await session.execute(
                    select(ProjectModel).where(ProjectModel.project_id == project_id)
                )
                model = result.scalar_one_or_none()

        return self._to_entity(model) if model else None

    async def get_by_api_key(self, api_key: str) -> Optional[ProjectDetails]:
        """Retrieve a project by api key."""
        async with store_errors("get_project_by_api_key", "<api key>"):
            async with self._db.session() as session:
                result = await session.execute(
                    select(ProjectModel).where(ProjectModel.project_api_key == api_key)
                )
                model = result.scalar_one_or_none()

        return self._to_entity(model) if model else None

    async def get_by_owner(self, owner_address: str) -> List[ProjectDetails]:
        """Retrieve projects of an owner, oldest first."""
        async with store_errors("get_projects_by_owner", owner_address):
            async with self._db.session() as session:
                result = await session.execute(
                    select(ProjectModel)
                    .where(ProjectModel.owner_address == owner_address)
                    .order_by(ProjectModel.created_at.asc())
                )
                models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def update_metadata(
        self,
        project_id: str,
        name: str,
        allowed_origins: Sequence[str],
    ) -> bool:
        """Update name and allowed origins in one statement."""
        async with store_errors("update_project", project_id):
            try:
                async with self._db.session() as session:
                    result = await session.execute(
                        update(ProjectModel)
                        .where(ProjectModel.project_id == project_id)
                        .values(name=name, allowed_origins=list(allowed_origins))
                    )
                    return result.rowcount > 0
            except IntegrityError as e:
                current = await self.get_by_id(project_id)
                owner = current.owner_address if current else "<unknown>"
                raise DuplicateNameException(owner, name) from e

    async def delete(self, project_id: str) -> bool:
        """
        Delete a project and everything it owns.

        Children are deleted explicitly so the cascade does not depend on
        the database enforcing foreign keys.
        """
        tank_ids = select(GasTankModel.gas_tank_id).where(
            GasTankModel.project_id == project_id
        )

        async with store_errors("delete_project", project_id):
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
                result = await session.execute(
                    delete(ProjectModel).where(ProjectModel.project_id == project_id)
                )
                return result.rowcount > 0

    async def count(self) -> int:
        async with store_errors("count_projects", "*"):
            async with self._db.session() as session:
                result = await session.execute(
                    select(func.count()).select_from(ProjectModel)
                )
                return int(result.scalar_one())

    async def _name_taken(self, owner_address: str, name: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                select(ProjectModel.project_id).where(
                    ProjectModel.owner_address == owner_address,
                    ProjectModel.name == name,
                )
            )
            return result.first() is not None

    def _to_entity(self, model: ProjectModel) -> ProjectDetails:
        """Convert database model to domain entity."""
        return ProjectDetails(
            project_id=model.project_id,
            api_key=model.project_api_key,
            name=model.name,
            owner_address=model.owner_address,
            allowed_origins=tuple(model.allowed_origins or ()),
            created_at=as_utc(model.created_at),
        )
