"""Project service - a dapp operator's project and its per-chain gas tanks."""

import asyncio
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from zerowallet.application.services.gas_tank import GasTank
from zerowallet.core.metrics import record_gas_tank_provisioned
from zerowallet.domain.entities import (
    GasTankDetails,
    GasTankSnapshot,
    NewGasTank,
    ProjectDetails,
)
from zerowallet.domain.exceptions import (
    DuplicateChainIdException,
    GasTankNotFoundException,
    InvalidArgumentException,
    ProjectNotFoundException,
)
from zerowallet.domain.interfaces import RelayerClient, Store

logger = structlog.get_logger(__name__)


class Project:
    """
    A project owns its metadata and at most one gas tank per chain.

    Build instances with `Project.load` or through the projects manager;
    a Project is only handed out once its details are loaded.
    """

    def __init__(
        self,
        details: ProjectDetails,
        store: Store,
        relayer: RelayerClient,
    ):
        self._details = details
        self._store = store
        self._relayer = relayer
        self._gas_tanks: Dict[int, GasTank] = {}
        self._log = logger.bind(project_id=details.project_id)

    @classmethod
    async def load(
        cls,
        store: Store,
        relayer: RelayerClient,
        project_id: Optional[str] = None,
        api_key: Optional[str] = None,
        eager: bool = False,
    ) -> "Project":
        """
        Load a project by id or by api key.

        With `eager`, every gas tank is built eagerly and their handshakes
        are awaited together. A failed handshake is logged and stays on that
        gas tank's `ready()`; the other gas tanks load regardless.

        Raises:
            InvalidArgumentException: Unless exactly one of id and api key is given
            ProjectNotFoundException: If no project matches
        """
        if (project_id is None) == (api_key is None):
            raise InvalidArgumentException(
                "exactly one of project_id and api_key must be given"
            )

        if project_id is not None:
            details = await store.projects.get_by_id(project_id)
            ref = project_id
        else:
            details = await store.projects.get_by_api_key(api_key)
            ref = "api_key"

        if details is None:
            raise ProjectNotFoundException(ref)

        project = cls(details, store, relayer)
        if eager:
            await project._load_gas_tanks()
        return project

    async def _load_gas_tanks(self) -> None:
        rows = await self._store.gas_tanks.list_by_project(self.project_id)
        tanks = [
            GasTank(row, self._store, self._relayer, eager=True) for row in rows
        ]
        for tank in tanks:
            self._gas_tanks[tank.chain_id] = tank

        results = await asyncio.gather(
            *(tank.ready() for tank in tanks),
            return_exceptions=True,
        )
        for tank, result in zip(tanks, results):
            if isinstance(result, Exception):
                self._log.warning(
                    "gas_tank_handshake_failed",
                    chain_id=tank.chain_id,
                    error_type=type(result).__name__,
                )

        self._log.info("gas_tanks_loaded", count=len(tanks))

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def details(self) -> ProjectDetails:
        return self._details

    @property
    def project_id(self) -> str:
        return self._details.project_id

    @property
    def api_key(self) -> str:
        return self._details.api_key

    @property
    def name(self) -> str:
        return self._details.name

    @property
    def owner_address(self) -> str:
        return self._details.owner_address

    @property
    def allowed_origins(self) -> Tuple[str, ...]:
        return self._details.allowed_origins

    @property
    def created_at(self):
        return self._details.created_at

    @property
    def loaded_chain_ids(self) -> List[int]:
        return sorted(self._gas_tanks)

    # =========================================================================
    # Gas tanks
    # =========================================================================

    async def add_gas_tank(
        self,
        chain_id: int,
        provider_url: str,
        whitelist: Sequence[str] = (),
    ) -> GasTank:
        """
        Fund a new gas tank on a chain and persist it with its whitelist.

        Raises:
            DuplicateChainIdException: If the project already has a gas tank
                on this chain; nothing is provisioned in that case
            RelayerException: If funding could not be provisioned
        """
        if await self._store.gas_tanks.get_by_chain(self.project_id, chain_id):
            raise DuplicateChainIdException(self.project_id, chain_id)

        credentials = await self._relayer.provision_funding(
            chain_id, f"{self.project_id}-{chain_id}"
        )
        record_gas_tank_provisioned()

        details = await self._store.gas_tanks.create(
            NewGasTank(
                project_id=self.project_id,
                chain_id=chain_id,
                provider_url=provider_url,
                api_key=credentials.api_key,
                funding_key=credentials.funding_key,
                whitelist=tuple(whitelist),
            )
        )
        self._log.info(
            "gas_tank_added",
            chain_id=chain_id,
            gas_tank_id=details.gas_tank_id,
            whitelist_size=len(whitelist),
        )

        gas_tank = GasTank(details, self._store, self._relayer, eager=True)
        self._gas_tanks[chain_id] = gas_tank
        return gas_tank

    async def gas_tank_by_chain(self, chain_id: int, eager: bool = False) -> GasTank:
        """
        Build a gas tank from its stored details.

        Raises:
            GasTankNotFoundException: If the project has no gas tank on the chain
        """
        details: Optional[GasTankDetails] = await self._store.gas_tanks.get_by_chain(
            self.project_id, chain_id
        )
        if details is None:
            raise GasTankNotFoundException(self.project_id, chain_id)
        return GasTank(details, self._store, self._relayer, eager=eager)

    def loaded_gas_tank(self, chain_id: int) -> GasTank:
        """
        Return a gas tank already held in memory.

        Raises:
            GasTankNotFoundException: If no gas tank is loaded for the chain
        """
        try:
            return self._gas_tanks[chain_id]
        except KeyError:
            raise GasTankNotFoundException(self.project_id, chain_id) from None

    async def snapshot_with_balances(self) -> List[GasTankSnapshot]:
        """Stored gas tanks with their whitelists and current relayer balances."""
        rows = await self._store.gas_tanks.list_with_whitelist(self.project_id)
        balances = await asyncio.gather(
            *(self._relayer.fetch_balance(details.api_key) for details, _ in rows)
        )
        return [
            GasTankSnapshot(
                gas_tank_id=details.gas_tank_id,
                project_id=details.project_id,
                chain_id=details.chain_id,
                provider_url=details.provider_url,
                funding_key=details.funding_key,
                created_at=details.created_at,
                whitelist=tuple(addresses),
                balance=balance,
            )
            for (details, addresses), balance in zip(rows, balances)
        ]

    # =========================================================================
    # Metadata
    # =========================================================================

    async def update_metadata(
        self,
        name: str,
        allowed_origins: Sequence[str],
    ) -> ProjectDetails:
        """
        Rename the project and replace its allowed origins.

        Raises:
            DuplicateNameException: If the owner has another project with the name
            ProjectNotFoundException: If the project was removed meanwhile
        """
        origins = tuple(allowed_origins)
        updated = await self._store.projects.update_metadata(
            self.project_id, name, origins
        )
        if not updated:
            raise ProjectNotFoundException(self.project_id)

        self._details = replace(self._details, name=name, allowed_origins=origins)
        self._log.info("project_metadata_updated", name=name)
        return self._details
