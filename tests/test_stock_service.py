from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fishstock.constants.ledger_entry_type import LedgerEntryType
from fishstock.core.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
    InsufficientStockError,
)
from fishstock.models.enums.stock_removal_kind import StockRemovalKind
from fishstock.models.enums.storage_location import StorageLocationStatus
from fishstock.schemas.inventory.stock_schemas import DisposalCreate, DispatchCreate
from fishstock.services.inventory import stock_service, ledger_service

pytestmark = pytest.mark.asyncio


def at(day: int, hour: int = 8) -> datetime:
    return datetime(2026, 1, day, hour, 0, tzinfo=timezone.utc)


# =====================================================
# INGEST
# =====================================================
async def test_ingest_creates_batch_and_additions(db, make_location, ingest, clerk):
    loc = await make_location("Cold Room A")

    batch = await ingest(loc.id, "PR-100", [(3, 10, "4.5"), (5, 2, "2.0")], entry_at=at(3))

    assert batch.batch_number == f"BATCH-{batch.id:08d}"
    assert batch.source_processing_record_id == "PR-100"
    assert batch.created_by == clerk.id
    assert [(e.size_class, e.quantity, e.entry_type) for e in batch.entries] == [
        (3, 10, LedgerEntryType.ADDITION),
        (5, 2, LedgerEntryType.ADDITION),
    ]
    assert await ledger_service.sum_by_cell(db, loc.id, 3) == (10, Decimal("4.5"))


async def test_ingest_keeps_supplied_batch_number(db, make_location, ingest):
    loc = await make_location("Cold Room A")

    batch = await ingest(loc.id, "PR-1", [(3, 1, "0.5")], batch_number="LAKE-2026-01")

    assert batch.batch_number == "LAKE-2026-01"


async def test_processing_record_is_ingested_once(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-1", [(3, 1, "0.5")])

    with pytest.raises(ConflictError):
        await ingest(loc.id, "PR-1", [(3, 1, "0.5")])

    assert await ledger_service.sum_by_cell(db, loc.id, 3) == (1, Decimal("0.5"))


async def test_ingest_into_inactive_location_is_refused(db, make_location, ingest):
    loc = await make_location("Old Shed", status=StorageLocationStatus.inactive)

    with pytest.raises(ValidationError):
        await ingest(loc.id, "PR-1", [(3, 1, "0.5")])


async def test_get_batch_unknown(db):
    with pytest.raises(NotFoundError):
        await stock_service.get_batch(db, 42)


# =====================================================
# REMOVALS
# =====================================================
async def test_disposal_debits_oldest_batch_first(db, make_location, ingest, clerk):
    loc = await make_location("Cold Room A")
    x = await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))
    y = await ingest(loc.id, "PR-Y", [(4, 10, "5.0")], entry_at=at(2))

    removal = await stock_service.dispose_stock(
        db,
        DisposalCreate(location_id=loc.id, size_class=4, quantity=14, reason="freezer failure"),
        clerk,
    )

    assert removal.kind == StockRemovalKind.disposal
    assert removal.weight_kg == Decimal("7.0")
    assert [(b.batch_id, b.quantity, b.weight_kg) for b in removal.batches] == [
        (x.id, 10, Decimal("5.0")),
        (y.id, 4, Decimal("2.0")),
    ]
    assert await ledger_service.sum_by_cell(db, loc.id, 4) == (6, Decimal("3.0"))


async def test_disposal_beyond_stock_is_refused(db, make_location, ingest, clerk):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))

    with pytest.raises(InsufficientStockError) as exc:
        await stock_service.dispose_stock(
            db,
            DisposalCreate(location_id=loc.id, size_class=4, quantity=11, reason="spoiled"),
            clerk,
        )

    assert exc.value.details["shortfall_quantity"] == 1
    assert await ledger_service.sum_by_cell(db, loc.id, 4) == (10, Decimal("5.0"))
    total, _ = await stock_service.list_removals(db)
    assert total == 0


async def test_dispatch_links_outlet_order(db, make_location, ingest, make_order, clerk):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))
    order = await make_order("outlet-1", [4], "2.5", at(2))

    removal = await stock_service.dispatch_stock(
        db,
        DispatchCreate(location_id=loc.id, size_class=4, quantity=5, outlet_order_id=order.id),
        clerk,
    )

    assert removal.kind == StockRemovalKind.dispatch
    assert removal.outlet_order_id == order.id
    assert removal.weight_kg == Decimal("2.5")

    total, items = await stock_service.list_removals(db, kind=StockRemovalKind.dispatch)
    assert total == 1
    assert items[0].id == removal.id


async def test_dispatch_to_unknown_order(db, make_location, ingest, clerk):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))

    with pytest.raises(NotFoundError):
        await stock_service.dispatch_stock(
            db,
            DispatchCreate(location_id=loc.id, size_class=4, quantity=1, outlet_order_id=999),
            clerk,
        )
