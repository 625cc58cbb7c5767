"""Composition root: builds the store, the relayer and the projects manager."""

from zerowallet.core.config import NativeConfig, load_native_config, settings
from zerowallet.domain.interfaces import RelayerClient, Store
from zerowallet.infrastructure.clients import HttpRelayerClient
from zerowallet.infrastructure.database import DatabaseSessionManager, db_manager
from zerowallet.infrastructure.repositories import build_store
from zerowallet.application.services import ProjectsManager


# Store dependencies
def get_store(db: DatabaseSessionManager = db_manager) -> Store:
    """Get the Store backed by an initialized database manager."""
    return build_store(db)


# External client dependencies
def get_relayer_client() -> HttpRelayerClient:
    """Get a RelayerClient instance configured from settings."""
    return HttpRelayerClient()


def get_native_config() -> NativeConfig | None:
    """Load the native project description, if one is configured."""
    if not settings.native_config_path:
        return None
    return load_native_config(settings.native_config_path)


# Service dependencies
async def create_projects_manager(
    store: Store | None = None,
    relayer: RelayerClient | None = None,
    native_config: NativeConfig | None = None,
) -> ProjectsManager:
    """
    Build a ProjectsManager and wait for native seeding.

    Must run inside the event loop that will use the manager.

    Raises:
        ConfigurationConflictException: If the stored native project
            disagrees with the configuration
    """
    manager = ProjectsManager(
        store=store or get_store(),
        relayer=relayer or get_relayer_client(),
        native_config=native_config if native_config is not None else get_native_config(),
    )
    await manager.ready()
    return manager
