"""
ZeroWallet - Gas Tank Core Entry Point

Gasless transaction sponsorship for dapp projects: per-chain gas tanks,
nonce-based wallet logins and contract whitelists in front of a relayer.
The core is embedded by a host process through `lifespan()`.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog

from zerowallet import __version__
from zerowallet.application.services import ProjectsManager
from zerowallet.core.dependencies import create_projects_manager
from zerowallet.core.logging import setup_logging
from zerowallet.infrastructure.database import db_manager


@asynccontextmanager
async def lifespan(create_tables: bool = False) -> AsyncGenerator[ProjectsManager, None]:
    """
    Core lifespan manager.

    Handles startup and shutdown:
    - Set up logging
    - Initialize the database connection pool
    - Seed the native project and yield the projects manager
    - Close the pool on shutdown
    """
    setup_logging()
    db_manager.init()

    logger = structlog.get_logger(__name__)

    try:
        if create_tables:
            await db_manager.create_all()

        manager = await create_projects_manager()
        logger.info("application_started", version=__version__)

        yield manager
    finally:
        await db_manager.close()
        logger.info("application_stopped")
