from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fishstock.constants.ledger_entry_type import LedgerEntryType
from fishstock.core.exceptions import ConsistencyError, ValidationError, NotFoundError
from fishstock.models.enums.outlet_order_status import OutletOrderStatus
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.schemas.inventory.stock_schemas import DisposalCreate
from fishstock.services.inventory import aggregator_service, stock_service

pytestmark = pytest.mark.asyncio


def at(day: int, hour: int = 8) -> datetime:
    return datetime(2026, 1, day, hour, 0, tzinfo=timezone.utc)


# =====================================================
# INVENTORY BY LOCATION
# =====================================================
async def test_inventory_by_location_lists_batches_oldest_first(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    newer = await ingest(loc.id, "PR-2", [(4, 10, "5.0")], entry_at=at(2))
    older = await ingest(loc.id, "PR-1", [(4, 10, "5.0"), (6, 3, "2.4")], entry_at=at(1))

    rows = await aggregator_service.inventory_by_location(db)

    assert [(r.size_class, r.quantity, r.weight_kg) for r in rows] == [
        (4, 20, Decimal("10.0")),
        (6, 3, Decimal("2.4")),
    ]
    assert [b.batch_id for b in rows[0].contributing_batches] == [older.id, newer.id]
    assert rows[0].location_name == "Cold Room A"


async def test_inventory_by_location_is_idempotent(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-1", [(4, 10, "5.0")], entry_at=at(1))

    first = await aggregator_service.inventory_by_location(db)
    second = await aggregator_service.inventory_by_location(db)

    assert first == second


async def test_emptied_cells_disappear(db, make_location, ingest, clerk):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-1", [(4, 10, "5.0")], entry_at=at(1))

    await stock_service.dispose_stock(
        db,
        DisposalCreate(location_id=loc.id, size_class=4, quantity=10, reason="spoiled"),
        clerk,
    )

    assert await aggregator_service.inventory_by_location(db) == []


async def test_negative_share_raises_consistency_error(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    batch = await ingest(loc.id, "PR-1", [(4, 10, "5.0")], entry_at=at(1))

    # written past the ledger service on purpose
    db.add(
        LedgerEntry(
            batch_id=batch.id,
            location_id=loc.id,
            size_class=4,
            quantity=-12,
            weight_kg=Decimal("-6.0"),
            entry_type=LedgerEntryType.DISPOSAL,
            entry_at=at(3),
        )
    )
    await db.commit()

    with pytest.raises(ConsistencyError):
        await aggregator_service.inventory_by_location(db)


# =====================================================
# OLDEST BATCHES
# =====================================================
async def test_oldest_batch_is_returned_first(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    x = await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))
    await ingest(loc.id, "PR-Y", [(4, 10, "5.0")], entry_at=at(2))

    rows = await aggregator_service.oldest_batches_for_removal(db, 1, as_of=at(11))

    assert len(rows) == 1
    assert rows[0].batch_id == x.id
    assert rows[0].days_in_storage == 10
    assert rows[0].remaining_quantity == 10
    assert rows[0].location_ids == [loc.id]


async def test_oldest_batches_tie_breaks_on_batch_number(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-2", [(4, 1, "0.5")], entry_at=at(1), batch_number="LOT-B")
    await ingest(loc.id, "PR-1", [(5, 1, "0.5")], entry_at=at(1), batch_number="LOT-A")

    rows = await aggregator_service.oldest_batches_for_removal(db, 10)

    assert [r.batch_number for r in rows] == ["LOT-A", "LOT-B"]


async def test_generated_batch_numbers_tie_break_in_creation_order(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    first = await ingest(loc.id, "PR-1", [(4, 1, "0.5")], entry_at=at(1))
    second = await ingest(loc.id, "PR-2", [(5, 1, "0.5")], entry_at=at(1))

    rows = await aggregator_service.oldest_batches_for_removal(db, 10)

    assert [r.batch_id for r in rows] == [first.id, second.id]
    assert len(rows[0].batch_number) == len(rows[1].batch_number)


async def test_oldest_batches_skip_depleted_batches(db, make_location, ingest, clerk):
    loc = await make_location("Cold Room A")
    await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))
    y = await ingest(loc.id, "PR-Y", [(4, 10, "5.0")], entry_at=at(2))

    await stock_service.dispose_stock(
        db,
        DisposalCreate(location_id=loc.id, size_class=4, quantity=10, reason="spoiled"),
        clerk,
    )

    rows = await aggregator_service.oldest_batches_for_removal(db, 5)
    assert [r.batch_id for r in rows] == [y.id]


async def test_oldest_batches_rejects_non_positive_limit(db):
    with pytest.raises(ValidationError):
        await aggregator_service.oldest_batches_for_removal(db, 0)


# =====================================================
# BATCH DETAILS
# =====================================================
async def test_batch_details_lists_remaining_cells(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    batch = await ingest(loc.id, "PR-1", [(4, 10, "5.0"), (6, 2, "1.6")], entry_at=at(1))

    details = await aggregator_service.batch_details(db, batch.id)

    assert details.remaining_quantity == 12
    assert details.remaining_weight_kg == Decimal("6.6")
    assert [c.size_class for c in details.cells] == [4, 6]


async def test_batch_details_unknown_batch(db):
    with pytest.raises(NotFoundError):
        await aggregator_service.batch_details(db, 77)


# =====================================================
# FIFO PLAN
# =====================================================
async def test_fifo_plan_takes_oldest_share_first(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    x = await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))
    y = await ingest(loc.id, "PR-Y", [(4, 10, "5.0")], entry_at=at(2))

    shares = await aggregator_service.fifo_contributions(db, loc.id, 4)
    plan = aggregator_service.fifo_plan(shares, 12)

    assert [(s.batch_id, qty, kg) for s, qty, kg in plan] == [
        (x.id, 10, Decimal("5.0")),
        (y.id, 2, Decimal("1.0")),
    ]


async def test_fifo_plan_within_first_share_only_touches_it(db, make_location, ingest):
    loc = await make_location("Cold Room A")
    x = await ingest(loc.id, "PR-X", [(4, 10, "5.0")], entry_at=at(1))
    await ingest(loc.id, "PR-Y", [(4, 10, "5.0")], entry_at=at(2))

    shares = await aggregator_service.fifo_contributions(db, loc.id, 4)
    plan = aggregator_service.fifo_plan(shares, 7)

    assert [(s.batch_id, qty) for s, qty, _ in plan] == [(x.id, 7)]


# =====================================================
# SIZE DEMAND
# =====================================================
async def test_size_demand_statistics(db, make_order):
    await make_order("outlet-1", [3, 4], "20.0", at(1), grade="A")
    await make_order("outlet-2", [4], "15.0", at(4), grade="B")
    await make_order("outlet-1", [4], "5.0", at(10), grade="A")
    await make_order("outlet-3", [5], "50.0", at(2), status=OutletOrderStatus.cancelled)
    await make_order("outlet-3", [6], "0.0", at(2))
    await make_order("outlet-4", [7], "9.0", at(2), status=OutletOrderStatus.pending)

    rows = await aggregator_service.size_demand_statistics(db)

    assert [r.size_class for r in rows] == [4, 3]

    size4 = rows[0]
    assert size4.total_orders == 3
    assert size4.total_weight_kg_requested == Decimal("40.0")
    assert size4.unique_outlets == 2
    assert size4.first_order_date == at(1)
    assert size4.last_order_date == at(10)
    assert size4.days_span == 9
    assert size4.most_requested_grade == "A"

    size3 = rows[1]
    assert size3.total_weight_kg_requested == Decimal("20.0")
    assert size3.days_span == 0


async def test_size_demand_ties_sort_by_size(db, make_order):
    await make_order("outlet-1", [8], "10.0", at(1))
    await make_order("outlet-2", [2], "10.0", at(2))

    rows = await aggregator_service.size_demand_statistics(db)

    assert [r.size_class for r in rows] == [2, 8]
    assert rows[0].most_requested_grade == "any"
