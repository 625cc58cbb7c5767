"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from zerowallet.domain.entities import (
    GasTankDetails,
    GaslessLogin,
    NewGasTank,
    ProjectDetails,
)


class ProjectRepository(ABC):
    """
    Abstract repository for Project persistence.

    Uniqueness on (owner_address, name), project_id and api_key is enforced
    by the implementation, not by callers.
    """

    @abstractmethod
    async def create(self, project: ProjectDetails) -> ProjectDetails:
        """
        Persist a new project.

        Raises:
            DuplicateNameException: If the owner already has a project
                with this name
            DuplicateResourceException: If the id or api key is taken
        """
        ...

    @abstractmethod
    async def get_by_id(self, project_id: str) -> Optional[ProjectDetails]:
        """Retrieve a project by id, None if absent."""
        ...

    @abstractmethod
    async def get_by_api_key(self, api_key: str) -> Optional[ProjectDetails]:
        """Retrieve a project by api key, None if absent."""
        ...

    @abstractmethod
    async def get_by_owner(self, owner_address: str) -> List[ProjectDetails]:
        """Retrieve every project of an owner, oldest first."""
        ...

    @abstractmethod
    async def update_metadata(
        self,
        project_id: str,
        name: str,
        allowed_origins: Sequence[str],
    ) -> bool:
        """
        Update name and allowed origins.

        Returns:
            False if the project does not exist

        Raises:
            DuplicateNameException: If the new name clashes
        """
        ...

    @abstractmethod
    async def delete(self, project_id: str) -> bool:
        """
        Delete a project with its gas tanks, whitelists and logins.

        Returns:
            False if the project does not exist
        """
        ...

    @abstractmethod
    async def count(self) -> int:
        """Count all projects."""
        ...


class GasTankRepository(ABC):
    """Abstract repository for GasTank persistence, unique on (project_id, chain_id)."""

    @abstractmethod
    async def create(self, gas_tank: NewGasTank) -> GasTankDetails:
        """
        Persist a gas tank together with its initial whitelist.

        Raises:
            DuplicateChainIdException: If the project already has a
                gas tank on this chain
        """
        ...

    @abstractmethod
    async def replace_for_project(
        self,
        project_id: str,
        gas_tanks: Sequence[NewGasTank],
    ) -> List[GasTankDetails]:
        """Delete every gas tank of a project and insert the given set, atomically."""
        ...

    @abstractmethod
    async def get_by_chain(
        self,
        project_id: str,
        chain_id: int,
    ) -> Optional[GasTankDetails]:
        """Retrieve a project's gas tank on a chain, None if absent."""
        ...

    @abstractmethod
    async def list_by_project(self, project_id: str) -> List[GasTankDetails]:
        """Retrieve all gas tanks of a project."""
        ...

    @abstractmethod
    async def list_with_whitelist(
        self,
        project_id: str,
    ) -> List[Tuple[GasTankDetails, List[str]]]:
        """Retrieve all gas tanks of a project with their whitelisted addresses."""
        ...

    @abstractmethod
    async def update_provider_url(self, gas_tank_id: int, provider_url: str) -> bool:
        """
        Update the upstream RPC endpoint.

        Returns:
            False if the gas tank does not exist
        """
        ...


class WhitelistRepository(ABC):
    """Abstract repository for contract whitelists, unique on (gas_tank_id, address)."""

    @abstractmethod
    async def contains(self, gas_tank_id: int, address: str) -> bool:
        ...

    @abstractmethod
    async def add(self, gas_tank_id: int, address: str) -> bool:
        """
        Whitelist an address.

        Returns:
            False if the address was already whitelisted
        """
        ...

    @abstractmethod
    async def remove(self, gas_tank_id: int, address: str) -> bool:
        """
        Remove an address from the whitelist.

        Returns:
            False if the address was not whitelisted
        """
        ...

    @abstractmethod
    async def list_addresses(self, gas_tank_id: int) -> List[str]:
        ...


class LoginRepository(ABC):
    """Abstract repository for gasless login records, unique on (gas_tank_id, address)."""

    @abstractmethod
    async def get(self, gas_tank_id: int, address: str) -> Optional[GaslessLogin]:
        ...

    @abstractmethod
    async def create(self, login: GaslessLogin) -> GaslessLogin:
        """
        Persist a new login record.

        Raises:
            AlreadyRegisteredException: If a record exists for the address
        """
        ...

    @abstractmethod
    async def replace_nonce(
        self,
        gas_tank_id: int,
        address: str,
        nonce: str,
        expires_at: datetime,
    ) -> bool:
        """
        Replace nonce and expiry in a single write.

        Returns:
            False if no record exists for the address
        """
        ...

    @abstractmethod
    async def delete(self, gas_tank_id: int, address: str) -> bool:
        """
        Delete a login record.

        Returns:
            False if no record exists for the address
        """
        ...


@dataclass(frozen=True)
class Store:
    """The persistence collaborator, shared by every project and gas tank."""

    projects: ProjectRepository
    gas_tanks: GasTankRepository
    whitelist: WhitelistRepository
    logins: LoginRepository
