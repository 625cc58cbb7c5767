"""Translation of SQLAlchemy failures into domain exceptions."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import structlog
from sqlalchemy.exc import SQLAlchemyError

from zerowallet.domain.exceptions import StoreException

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def store_errors(operation: str, entity_key: str) -> AsyncGenerator[None, None]:
    """
    Wrap unexpected database failures as StoreException.

    Constraint violations the caller knows how to interpret must be
    caught inside this block and re-raised as domain exceptions.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(
            "store_operation_failed",
            operation=operation,
            entity_key=entity_key,
            error_type=type(e).__name__,
        )
        raise StoreException(operation, entity_key) from e


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on the way back; stored instants are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
