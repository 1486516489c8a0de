from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from fishstock.constants.ledger_entry_type import LedgerEntryType
from fishstock.constants.error_codes import ErrorCode
from fishstock.core.exceptions import (
    ValidationError,
    InsufficientStockError,
    ConsistencyError,
)
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.services.inventory import ledger_service

pytestmark = pytest.mark.asyncio


def at(day: int, hour: int = 8) -> datetime:
    return datetime(2026, 1, day, hour, 0, tzinfo=timezone.utc)


async def _seed(make_location, ingest):
    loc = await make_location("Cold Room A")
    batch = await ingest(loc.id, "PR-1", [(3, 10, "5.0")], entry_at=at(1))
    return loc, batch


async def test_append_rejects_zero_quantity(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    with pytest.raises(ValidationError):
        await ledger_service.append(
            db,
            batch_id=batch.id,
            location_id=loc.id,
            size_class=3,
            quantity=0,
            weight_kg=Decimal("0.0"),
            entry_type=LedgerEntryType.ADDITION,
        )


async def test_append_rejects_non_positive_size(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    with pytest.raises(ValidationError):
        await ledger_service.append(
            db,
            batch_id=batch.id,
            location_id=loc.id,
            size_class=0,
            quantity=1,
            weight_kg=Decimal("0.5"),
            entry_type=LedgerEntryType.ADDITION,
        )


async def test_append_rejects_weight_sign_mismatch(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    with pytest.raises(ValidationError):
        await ledger_service.append(
            db,
            batch_id=batch.id,
            location_id=loc.id,
            size_class=3,
            quantity=2,
            weight_kg=Decimal("-1.0"),
            entry_type=LedgerEntryType.ADDITION,
        )


async def test_append_rejects_sign_against_entry_type(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    with pytest.raises(ValidationError):
        await ledger_service.append(
            db,
            batch_id=batch.id,
            location_id=loc.id,
            size_class=3,
            quantity=2,
            weight_kg=Decimal("1.0"),
            entry_type=LedgerEntryType.DISPOSAL,
        )


async def test_append_requires_existing_batch(db, make_location):
    loc = await make_location("Cold Room A")

    with pytest.raises(ValidationError) as exc:
        await ledger_service.append(
            db,
            batch_id=999,
            location_id=loc.id,
            size_class=3,
            quantity=1,
            weight_kg=Decimal("0.5"),
            entry_type=LedgerEntryType.ADDITION,
        )

    assert exc.value.status_code == 400
    assert exc.value.error_code == ErrorCode.BATCH_NOT_FOUND
    assert exc.value.details == {"batch_id": 999}


async def test_append_requires_existing_location(db, make_location, ingest):
    _, batch = await _seed(make_location, ingest)

    with pytest.raises(ValidationError) as exc:
        await ledger_service.append(
            db,
            batch_id=batch.id,
            location_id=999,
            size_class=3,
            quantity=1,
            weight_kg=Decimal("0.5"),
            entry_type=LedgerEntryType.ADDITION,
        )

    assert exc.value.status_code == 400
    assert exc.value.error_code == ErrorCode.LOCATION_NOT_FOUND
    assert exc.value.details == {"location_id": 999}


async def test_append_refuses_to_overdraw_batch_share(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    with pytest.raises(InsufficientStockError) as exc:
        await ledger_service.append(
            db,
            batch_id=batch.id,
            location_id=loc.id,
            size_class=3,
            quantity=-11,
            weight_kg=Decimal("-5.0"),
            entry_type=LedgerEntryType.DISPOSAL,
        )

    assert exc.value.details["shortfall_quantity"] == 1
    await db.rollback()
    assert await ledger_service.sum_by_cell(db, loc.id, 3) == (10, Decimal("5.0"))


async def test_append_requires_full_weight_when_share_emptied(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    with pytest.raises(ValidationError):
        await ledger_service.append(
            db,
            batch_id=batch.id,
            location_id=loc.id,
            size_class=3,
            quantity=-10,
            weight_kg=Decimal("-4.0"),
            entry_type=LedgerEntryType.DISPOSAL,
        )


async def test_sum_by_cell_folds_signed_entries(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    await ledger_service.append(
        db,
        batch_id=batch.id,
        location_id=loc.id,
        size_class=3,
        quantity=-4,
        weight_kg=Decimal("-2.0"),
        entry_type=LedgerEntryType.DISPOSAL,
    )
    await db.commit()

    assert await ledger_service.sum_by_cell(db, loc.id, 3) == (6, Decimal("3.0"))
    assert await ledger_service.sum_by_cell(db, loc.id, 7) == (0, Decimal("0.0"))


async def test_entries_are_ordered_and_restartable(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    late = await ingest(loc.id, "PR-2", [(3, 2, "1.0")], entry_at=at(5))
    early = await ingest(loc.id, "PR-1", [(3, 2, "1.0"), (4, 1, "0.8")], entry_at=at(2))

    entries = ledger_service.LedgerEntries(db, LedgerEntry.location_id == loc.id, chunk_size=1)

    first_pass = [e.id async for e in entries]
    second_pass = [e.id async for e in entries]

    assert first_pass == second_pass
    assert len(first_pass) == 3

    batches = [e.batch_id async for e in ledger_service.entries_for_location(db, loc.id)]
    assert batches == [early.id, early.id, late.id]

    cell = await ledger_service.entries_for_cell(db, loc.id, 4).to_list()
    assert [e.quantity for e in cell] == [1]


async def test_entries_for_batch_only_returns_that_batch(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    first = await ingest(loc.id, "PR-1", [(3, 2, "1.0")], entry_at=at(1))
    await ingest(loc.id, "PR-2", [(3, 2, "1.0")], entry_at=at(2))

    entries = await ledger_service.entries_for_batch(db, first.id).to_list()
    assert {e.batch_id for e in entries} == {first.id}


async def test_ledger_entries_cannot_be_updated(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    entry = await db.scalar(select(LedgerEntry).where(LedgerEntry.batch_id == batch.id))
    entry.quantity = 99

    with pytest.raises(ConsistencyError):
        await db.flush()


async def test_ledger_entries_cannot_be_deleted(db, make_location, ingest):
    loc, batch = await _seed(make_location, ingest)

    entry = await db.scalar(select(LedgerEntry).where(LedgerEntry.batch_id == batch.id))
    await db.delete(entry)

    with pytest.raises(ConsistencyError):
        await db.flush()
