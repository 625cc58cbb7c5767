"""Database infrastructure."""

from .connection import DatabaseSessionManager, db_manager
from .models import (
    Base,
    ContractWhitelistModel,
    GasTankModel,
    GaslessLoginModel,
    ProjectModel,
)

__all__ = [
    "DatabaseSessionManager",
    "db_manager",
    "Base",
    "ContractWhitelistModel",
    "GasTankModel",
    "GaslessLoginModel",
    "ProjectModel",
]
