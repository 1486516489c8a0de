import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from fishstock.core.db import build_engine, init_models
from fishstock.core.exceptions import InsufficientCapacityError
from fishstock.models.enums.transfer_status import TransferStatus
from fishstock.schemas.inventory.stock_schemas import StockItemIn
from fishstock.schemas.inventory.transfer_schemas import TransferCreate
from fishstock.services.inventory import transfer_service, capacity_service

pytestmark = pytest.mark.asyncio


# every session gets its own connection to the same database file
@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", "sqlite")
    await init_models(eng)

    yield eng
    await eng.dispose()


def at(day: int, hour: int = 8) -> datetime:
    return datetime(2026, 1, day, hour, 0, tzinfo=timezone.utc)


async def test_parallel_approvals_cannot_overfill_destination(
    db, session_factory, make_location, ingest, clerk, admin
):
    a = await make_location("Location A", capacity_kg="200.0")
    b = await make_location("Location B", capacity_kg="30.0")
    await ingest(a.id, "PR-A", [(3, 10, "20.0"), (4, 10, "20.0")], entry_at=at(1))

    # each fits on its own, together they do not
    first = await transfer_service.create_transfer(
        db,
        TransferCreate(
            source_location_id=a.id,
            destination_location_id=b.id,
            items=[StockItemIn(size_class=3, quantity=10, weight_kg=Decimal("20.0"))],
        ),
        clerk,
    )
    second = await transfer_service.create_transfer(
        db,
        TransferCreate(
            source_location_id=a.id,
            destination_location_id=b.id,
            items=[StockItemIn(size_class=4, quantity=10, weight_kg=Decimal("20.0"))],
        ),
        clerk,
    )

    async def approve(transfer_id):
        async with session_factory() as session:
            return await transfer_service.approve_transfer(session, transfer_id, admin)

    results = await asyncio.gather(
        approve(first.id),
        approve(second.id),
        return_exceptions=True,
    )

    completed = [r for r in results if not isinstance(r, BaseException)]
    refused = [r for r in results if isinstance(r, InsufficientCapacityError)]
    assert len(completed) == 1
    assert len(refused) == 1
    assert completed[0].status == TransferStatus.completed

    async with session_factory() as session:
        usage = await capacity_service.current_usage(session, b.id)
        assert usage == Decimal("20.0")
        assert usage <= Decimal("30.0")

        loser = first.id if completed[0].id == second.id else second.id
        assert (await transfer_service.get_transfer(session, loser)).status == TransferStatus.rejected
