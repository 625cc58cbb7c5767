"""Database connection and session management."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from zerowallet.core.config import settings

from .models import Base


class DatabaseSessionManager:
    """
    Manages database connections and sessions.

    Uses SQLAlchemy async engine for non-blocking database operations.
    One manager is shared by every repository; each store operation
    opens its own session from the engine's pool.
    """

    def __init__(self):
        self._engine = None
        self._sessionmaker = None

    def init(
        self,
        database_url: str | None = None,
        engine: AsyncEngine | None = None,
    ):
        """
        Initialize the database engine and session factory.

        Args:
            database_url: Optional override for the database URL
            engine: Optional pre-built engine (used by tests)
        """
        if engine is None:
            url = database_url or settings.database_url

            # Convert postgres:// to postgresql+asyncpg://
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

            pool_options = {}
            if not url.startswith("sqlite"):
                pool_options = {
                    "pool_size": settings.db_pool_size,
                    "max_overflow": settings.db_max_overflow,
                }

            engine = create_async_engine(
                url,
                echo=settings.debug,
                pool_pre_ping=True,
                **pool_options,
            )

        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    async def create_all(self):
        """Create missing tables."""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        """Close the database engine."""
        if self._engine:
            await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional scope around operations.

        Yields:
            An async database session
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


db_manager = DatabaseSessionManager()
