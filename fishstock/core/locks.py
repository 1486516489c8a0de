# fishstock/core/locks.py

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)


class LocationLockRegistry:
    """Per-location mutual exclusion for ledger writers.

    Locks are always taken in ascending location id order so two writers
    touching the same pair of locations cannot deadlock.
    """

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}

    def _lock_for(self, location_id: int) -> asyncio.Lock:
        lock = self._locks.get(location_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[location_id] = lock
        return lock

    def is_locked(self, location_id: int) -> bool:
        lock = self._locks.get(location_id)
        return bool(lock and lock.locked())

    @asynccontextmanager
    async def hold(self, location_ids: Iterable[int]) -> AsyncIterator[None]:
        ordered = sorted(set(location_ids))
        acquired: list[asyncio.Lock] = []
        try:
            for location_id in ordered:
                lock = self._lock_for(location_id)
                await lock.acquire()
                acquired.append(lock)
            logger.debug("Location locks held", extra={"location_ids": ordered})
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


location_locks = LocationLockRegistry()


async def lock_location_rows(db: AsyncSession, location_ids: Iterable[int]) -> None:
    """Row-lock the locations for the rest of the transaction (Postgres).

    SQLite ignores FOR UPDATE; the in-process registry covers it there.
    """
    ordered = sorted(set(location_ids))
    await db.execute(
        select(StorageLocation.id)
        .where(StorageLocation.id.in_(ordered))
        .order_by(StorageLocation.id)
        .with_for_update()
    )


@asynccontextmanager
async def serialized_locations(
    db: AsyncSession, location_ids: Iterable[int]
) -> AsyncIterator[None]:
    ids = list(location_ids)
    async with location_locks.hold(ids):
        await lock_location_rows(db, ids)
        yield
