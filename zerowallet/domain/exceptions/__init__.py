"""Domain Exceptions - Business rule violations and domain errors."""

from .base import (
    DomainException,
    DuplicateResourceException,
    InvalidArgumentException,
    NotFoundException,
)
from .project import (
    ConfigurationConflictException,
    DuplicateNameException,
    ProjectNotFoundException,
)
from .gas_tank import DuplicateChainIdException, GasTankNotFoundException
from .authorization import (
    AlreadyRegisteredException,
    ContractNotWhitelistedException,
    GateRejectedException,
    NotRegisteredException,
    NotWhitelistedException,
    UnauthorizedException,
    WalletNotDeployedException,
)
from .upstream import (
    RelayerException,
    RelayerTimeoutException,
    RelayerUnavailableException,
    StoreException,
    UpstreamException,
)

__all__ = [
    "DomainException",
    "DuplicateResourceException",
    "InvalidArgumentException",
    "NotFoundException",
    "ConfigurationConflictException",
    "DuplicateNameException",
    "ProjectNotFoundException",
    "DuplicateChainIdException",
    "GasTankNotFoundException",
    "AlreadyRegisteredException",
    "ContractNotWhitelistedException",
    "GateRejectedException",
    "NotRegisteredException",
    "NotWhitelistedException",
    "UnauthorizedException",
    "WalletNotDeployedException",
    "RelayerException",
    "RelayerTimeoutException",
    "RelayerUnavailableException",
    "StoreException",
    "UpstreamException",
]
