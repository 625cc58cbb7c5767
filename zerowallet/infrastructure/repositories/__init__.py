"""Repository implementations."""

from zerowallet.domain.interfaces import Store
from zerowallet.infrastructure.database import DatabaseSessionManager

from .project_repository import PostgresProjectRepository
from .gas_tank_repository import PostgresGasTankRepository
from .whitelist_repository import PostgresWhitelistRepository
from .login_repository import PostgresLoginRepository


def build_store(db: DatabaseSessionManager) -> Store:
    """Bundle the repositories sharing one database manager."""
    return Store(
        projects=PostgresProjectRepository(db),
        gas_tanks=PostgresGasTankRepository(db),
        whitelist=PostgresWhitelistRepository(db),
        logins=PostgresLoginRepository(db),
    )


__all__ = [
    "PostgresProjectRepository",
    "PostgresGasTankRepository",
    "PostgresWhitelistRepository",
    "PostgresLoginRepository",
    "build_store",
]
