"""
Domain Interfaces (Ports)
"""

from .repositories import (
    GasTankRepository,
    LoginRepository,
    ProjectRepository,
    Store,
    WhitelistRepository,
)
from .clients import GasTankRelayer, RelayerClient

__all__ = [
    "GasTankRepository",
    "LoginRepository",
    "ProjectRepository",
    "Store",
    "WhitelistRepository",
    "GasTankRelayer",
    "RelayerClient",
]
