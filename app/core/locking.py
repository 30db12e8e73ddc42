"""Per-court serialization for check-then-write operations.

Every operation that reads existing bookings and then writes based on what it
saw runs inside ``court_lock``. Within one process the lock is an
``asyncio.Lock`` keyed by court id; across processes the ``SELECT ... FOR
UPDATE`` on the court row holds a row lock until the transaction ends
(PostgreSQL). SQLite ignores ``FOR UPDATE`` and falls back to its own
single-writer lock.
"""
import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ConcurrencyConflict, NotFoundError
from app.models.court import Court

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE codes for serialization failure and deadlock
RETRYABLE_SQLSTATES = {"40001", "40P01"}

_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[int, asyncio.Lock]]" = (
    weakref.WeakKeyDictionary()
)


def _lock_for(court_id: int) -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    loop_locks = _locks.setdefault(loop, {})
    lock = loop_locks.get(court_id)
    if lock is None:
        lock = loop_locks[court_id] = asyncio.Lock()
    return lock


@asynccontextmanager
async def court_lock(db: AsyncSession, court_id: int):
    """
    Serialize writers for one court and yield the locked court row.

    Raises:
        NotFoundError: If the court does not exist
    """
    lock = _lock_for(court_id)
    async with lock:
        result = await db.execute(
            select(Court)
            .where(Court.id == court_id)
            .with_for_update(of=Court)
            .execution_options(populate_existing=True)
        )
        court = result.scalar_one_or_none()
        if court is None:
            raise NotFoundError(f"Court {court_id} not found")
        logger.debug(f"Acquired lock for court {court_id}")
        yield court


def is_retryable(exc: DBAPIError) -> bool:
    """Return True for lock timeouts, serialization failures and deadlocks."""
    if isinstance(exc, OperationalError):
        return True
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in RETRYABLE_SQLSTATES


async def run_with_retries(
    db: AsyncSession,
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Run a transactional unit of work, retrying on serialization failures.

    The operation is expected to commit on success. Any database error rolls
    the session back before the next attempt; non-retryable errors propagate
    immediately.

    Raises:
        ConcurrencyConflict: If every attempt failed with a retryable error
    """
    attempts = max(settings.MAX_RETRIES, 1)
    for attempt in range(attempts):
        try:
            return await operation(*args, **kwargs)
        except DBAPIError as e:
            await db.rollback()
            if not is_retryable(e):
                raise
            logger.warning(
                f"Transaction failed (attempt {attempt + 1}/{attempts}): {e}"
            )
            if attempt == attempts - 1:
                raise ConcurrencyConflict(
                    "The court is busy, please try again",
                    details={"attempts": attempts},
                ) from e
            await asyncio.sleep(0.05 * (2 ** attempt))
        except Exception:
            await db.rollback()
            raise

    raise ConcurrencyConflict("Max retries exceeded")
