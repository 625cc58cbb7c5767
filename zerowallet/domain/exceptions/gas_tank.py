"""Gas tank-related domain exceptions."""

from .base import DuplicateResourceException, NotFoundException


class GasTankNotFoundException(NotFoundException):
    """Raised when a project has no gas tank on the requested chain."""

    def __init__(self, project_id: str, chain_id: int):
        super().__init__(
            message=f"Gas tank not found for project {project_id} on chain {chain_id}",
            code="GAS_TANK_NOT_FOUND",
        )
        self.project_id = project_id
        self.chain_id = chain_id


class DuplicateChainIdException(DuplicateResourceException):
    """Raised when a project already has a gas tank on the chain."""

    def __init__(self, project_id: str, chain_id: int):
        super().__init__(
            message=f"Project {project_id} already has a gas tank on chain {chain_id}",
            code="DUPLICATE_CHAIN_ID",
        )
        self.project_id = project_id
        self.chain_id = chain_id
