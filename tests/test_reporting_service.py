from datetime import datetime, timezone

import pytest

from fishstock.core.config import OLDEST_BATCHES_DEFAULT_LIMIT
from fishstock.core.exceptions import ValidationError
from fishstock.services.inventory import reporting_service

pytestmark = pytest.mark.asyncio


def at(day: int, hour: int = 8) -> datetime:
    return datetime(2026, 1, day, hour, 0, tzinfo=timezone.utc)


async def test_oldest_batches_defaults_the_limit(db, make_location, ingest):
    loc = await make_location("Cold Room A", capacity_kg="1000.0")
    for n in range(OLDEST_BATCHES_DEFAULT_LIMIT + 1):
        await ingest(loc.id, f"PR-{n}", [(3, 1, "0.5")], entry_at=at(1, hour=n % 24))

    rows = await reporting_service.oldest_batches(db)

    assert len(rows) == OLDEST_BATCHES_DEFAULT_LIMIT


async def test_oldest_batches_zero_limit_is_refused(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-1", [(3, 1, "0.5")], entry_at=at(1))

    with pytest.raises(ValidationError):
        await reporting_service.oldest_batches(db, 0)
