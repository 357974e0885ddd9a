"""Bounded, error-translating wrappers around AsyncSession calls."""
import asyncio

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from question_images.core.config import get_settings
from question_images.core.errors import StoreError

logger = structlog.get_logger(__name__)


async def guarded(awaitable, what: str):
    """Await a store call with the configured timeout.

    Timeouts become a retriable ``StoreError``; driver errors a plain one.
    Nothing is retried here.
    """
    timeout = get_settings().store_timeout_seconds
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("store_timeout", operation=what, timeout_seconds=timeout)
        raise StoreError(f"{what} timed out after {timeout:g}s", retriable=True) from exc
    except SQLAlchemyError as exc:
        logger.error("store_error", operation=what, error=str(exc))
        raise StoreError(f"{what} failed: {exc.__class__.__name__}") from exc


async def execute(db: AsyncSession, statement, what: str = "query"):
    return await guarded(db.execute(statement), what)


async def flush(db: AsyncSession, what: str = "flush") -> None:
    await guarded(db.flush(), what)


async def commit(db: AsyncSession, what: str = "commit") -> None:
    """Commit, rolling the session back if the commit itself fails."""
    try:
        await guarded(db.commit(), what)
    except StoreError:
        await db.rollback()
        raise
