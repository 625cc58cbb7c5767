"""Projects manager - the directory of projects and the native project seed."""

from typing import List, Optional, Sequence

import structlog

from zerowallet.application.lifecycle import LifecycleState, Readiness
from zerowallet.application.services.project import Project
from zerowallet.core.config import NativeConfig
from zerowallet.domain.entities import NewGasTank, ProjectDetails
from zerowallet.domain.exceptions import (
    ConfigurationConflictException,
    DuplicateResourceException,
    ProjectNotFoundException,
)
from zerowallet.domain.interfaces import RelayerClient, Store

logger = structlog.get_logger(__name__)


class ProjectsManager:
    """
    Creates, finds and removes projects.

    When a native configuration is given, the native project and its gas
    tanks are seeded as soon as the manager is built. Every operation
    waits for seeding first, and a seeding failure is raised to each caller.
    """

    def __init__(
        self,
        store: Store,
        relayer: RelayerClient,
        native_config: Optional[NativeConfig] = None,
    ):
        self._store = store
        self._relayer = relayer
        self._native_config = native_config
        self._readiness = Readiness(self._seed(), name="projects_manager")

    async def ready(self) -> LifecycleState:
        """
        Wait for native seeding to finish.

        Raises:
            ConfigurationConflictException: If the stored native project
                disagrees with the configuration
        """
        return await self._readiness.wait()

    @property
    def state(self) -> LifecycleState:
        return self._readiness.state

    # =========================================================================
    # Native seeding
    # =========================================================================

    async def _seed(self) -> None:
        if self._native_config is None:
            return

        native = self._native_config.project
        log = logger.bind(project_id=native.project_id)

        chain_ids = [tank.chain_id for tank in self._native_config.gas_tanks.values()]
        repeated = sorted({c for c in chain_ids if chain_ids.count(c) > 1})
        if repeated:
            raise ConfigurationConflictException(
                f"Native gas tanks repeat chain ids: {repeated}"
            )

        existing = await self._store.projects.get_by_id(native.project_id)
        if existing is None:
            try:
                await self._store.projects.create(
                    ProjectDetails(
                        project_id=native.project_id,
                        api_key=native.api_key,
                        name=native.name,
                        owner_address=native.owner_address,
                        allowed_origins=tuple(native.allowed_origins),
                    )
                )
            except DuplicateResourceException as e:
                raise ConfigurationConflictException(
                    f"Native project {native.project_id} collides with an "
                    f"existing project: {e.message}"
                ) from e
            log.info("native_project_created")
        else:
            mismatched = [
                field
                for field, stored, configured in (
                    ("api_key", existing.api_key, native.api_key),
                    ("name", existing.name, native.name),
                    ("owner_address", existing.owner_address, native.owner_address),
                )
                if stored != configured
            ]
            if mismatched:
                raise ConfigurationConflictException(
                    f"Stored native project {native.project_id} differs from "
                    f"configuration in: {', '.join(mismatched)}"
                )

        gas_tanks = [
            NewGasTank(
                project_id=native.project_id,
                chain_id=tank.chain_id,
                provider_url=tank.provider_url,
                api_key=tank.api_key,
                funding_key=tank.funding_key,
                whitelist=tuple(tank.whitelist),
            )
            for tank in self._native_config.gas_tanks.values()
        ]
        await self._store.gas_tanks.replace_for_project(native.project_id, gas_tanks)
        log.info("native_gas_tanks_seeded", count=len(gas_tanks))

    # =========================================================================
    # Directory operations
    # =========================================================================

    async def create_project(
        self,
        name: str,
        owner_address: str,
        allowed_origins: Sequence[str] = (),
    ) -> Project:
        """
        Create a project with a generated id and api key.

        Raises:
            DuplicateNameException: If the owner already has a project with the name
        """
        await self.ready()

        details = await self._store.projects.create(
            ProjectDetails(
                name=name,
                owner_address=owner_address,
                allowed_origins=tuple(allowed_origins),
            )
        )
        logger.info(
            "project_created",
            project_id=details.project_id,
            owner_address=owner_address,
        )
        return Project(details, self._store, self._relayer)

    async def get_project_by_id(self, project_id: str, eager: bool = False) -> Project:
        """
        Raises:
            ProjectNotFoundException: If no project has the id
        """
        await self.ready()
        return await Project.load(
            self._store, self._relayer, project_id=project_id, eager=eager
        )

    async def get_project_by_api_key(self, api_key: str, eager: bool = False) -> Project:
        """
        Raises:
            ProjectNotFoundException: If no project has the api key
        """
        await self.ready()
        return await Project.load(
            self._store, self._relayer, api_key=api_key, eager=eager
        )

    async def remove_project(self, project_id: str) -> None:
        """
        Delete a project with all of its gas tanks, whitelists and logins.

        Raises:
            ProjectNotFoundException: If no project has the id
        """
        await self.ready()

        if not await self._store.projects.delete(project_id):
            raise ProjectNotFoundException(project_id)

        logger.info("project_removed", project_id=project_id)

    async def count_projects(self) -> int:
        await self.ready()
        return await self._store.projects.count()

    async def projects_by_owner(self, owner_address: str) -> List[ProjectDetails]:
        """Every project of an owner, as plain details."""
        await self.ready()
        return await self._store.projects.get_by_owner(owner_address)
