"""Unit-of-work helper: commit on success, roll back on any failure."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.rewards.errors import RewardsError, StorageFailure

logger = structlog.get_logger()


@asynccontextmanager
async def unit_of_work(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """Run the block as one transaction.

    Rewards errors roll back and propagate unchanged. Store errors and
    statement timeouts roll back and surface as StorageFailure. Anything
    else, cancellation included, rolls back and propagates.
    """
    try:
        yield db
        await db.commit()
    except RewardsError:
        await db.rollback()
        raise
    except (SQLAlchemyError, TimeoutError) as exc:
        await db.rollback()
        logger.error("storage_failure", operation=operation, error=str(exc))
        raise StorageFailure(f"{operation} failed") from exc
    except BaseException:
        await db.rollback()
        raise
