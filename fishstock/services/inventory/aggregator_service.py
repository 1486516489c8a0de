import math
from collections import defaultdict, Counter
from datetime import datetime
from decimal import Decimal
from typing import NamedTuple, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.exceptions import ConsistencyError, NotFoundError, ValidationError
from fishstock.constants.error_codes import ErrorCode
from fishstock.constants.ledger_entry_type import LedgerEntryType
from fishstock.models.inventory.batch_models import Batch
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.models.orders.outlet_order_models import OutletOrder
from fishstock.models.enums.outlet_order_status import DEMAND_ORDER_STATUSES
from fishstock.schemas.inventory.stock_schemas import BatchShare, BatchDetailsOut, BatchCellOut
from fishstock.schemas.inventory.report_schemas import InventoryCellOut, OldestBatchOut, SizeDemandOut
from fishstock.utils.decimal_utils import to_kg, share_of_weight, ZERO_KG
from fishstock.utils.time_utils import utcnow, as_utc
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_GRADE = "any"


class CellShare(NamedTuple):
    """What one batch still holds in one (location, size) cell."""

    location_id: int
    size_class: int
    batch_id: int
    batch_number: str
    quantity: int
    weight_kg: Decimal
    first_entry_at: datetime
    first_entry_id: int

    def fifo_key(self):
        return (self.first_entry_at, self.first_entry_id)

    def as_batch_share(self) -> BatchShare:
        return BatchShare(
            batch_id=self.batch_id,
            batch_number=self.batch_number,
            quantity=self.quantity,
            weight_kg=self.weight_kg,
            first_entry_at=self.first_entry_at,
        )


# =====================================================
# SHARES
# =====================================================
async def cell_shares(
    db: AsyncSession,
    *,
    location_id: Optional[int] = None,
    size_class: Optional[int] = None,
    batch_id: Optional[int] = None,
) -> list[CellShare]:
    """Non-empty batch shares, oldest-first within each cell.

    Raises ConsistencyError when any share has gone negative.
    """
    positive = LedgerEntry.quantity > 0
    stmt = (
        select(
            LedgerEntry.location_id,
            LedgerEntry.size_class,
            LedgerEntry.batch_id,
            Batch.batch_number,
            func.sum(LedgerEntry.quantity),
            func.sum(LedgerEntry.weight_kg),
            func.min(case((positive, LedgerEntry.entry_at))),
            func.min(case((positive, LedgerEntry.id))),
        )
        .join(Batch, Batch.id == LedgerEntry.batch_id)
        .group_by(
            LedgerEntry.location_id,
            LedgerEntry.size_class,
            LedgerEntry.batch_id,
            Batch.batch_number,
        )
    )
    if location_id is not None:
        stmt = stmt.where(LedgerEntry.location_id == location_id)
    if size_class is not None:
        stmt = stmt.where(LedgerEntry.size_class == size_class)
    if batch_id is not None:
        stmt = stmt.where(LedgerEntry.batch_id == batch_id)

    shares: list[CellShare] = []
    for loc_id, size, b_id, b_number, qty, kg, first_at, first_id in (await db.execute(stmt)).all():
        qty = int(qty or 0)
        kg = to_kg(kg)

        if qty < 0 or kg < 0 or (qty == 0 and kg != 0) or first_id is None:
            logger.critical(
                "Negative batch share detected",
                extra={"location_id": loc_id, "size_class": size, "batch_id": b_id, "quantity": qty, "weight_kg": str(kg)},
            )
            raise ConsistencyError(
                "Ledger holds a negative batch share",
                {
                    "location_id": loc_id,
                    "size_class": size,
                    "batch_id": b_id,
                    "quantity": qty,
                    "weight_kg": float(kg),
                },
            )
        if qty == 0:
            continue

        shares.append(
            CellShare(loc_id, size, b_id, b_number, qty, kg, as_utc(first_at), first_id)
        )

    shares.sort(key=lambda s: (s.location_id, s.size_class, s.first_entry_at, s.first_entry_id))
    return shares


async def fifo_contributions(
    db: AsyncSession,
    location_id: int,
    size_class: int,
) -> list[CellShare]:
    return await cell_shares(db, location_id=location_id, size_class=size_class)


# =====================================================
# INVENTORY BY LOCATION
# =====================================================
async def inventory_by_location(db: AsyncSession) -> list[InventoryCellOut]:
    shares = await cell_shares(db)
    names = dict((await db.execute(select(StorageLocation.id, StorageLocation.name))).all())

    cells: dict[tuple[int, int], list[CellShare]] = defaultdict(list)
    for share in shares:
        cells[(share.location_id, share.size_class)].append(share)

    rows = []
    for (loc_id, size), members in cells.items():
        rows.append(
            InventoryCellOut(
                location_id=loc_id,
                location_name=names.get(loc_id, ""),
                size_class=size,
                quantity=sum(s.quantity for s in members),
                weight_kg=to_kg(sum((s.weight_kg for s in members), ZERO_KG)),
                contributing_batches=[s.as_batch_share() for s in members],
            )
        )

    rows.sort(key=lambda r: (r.location_name, r.location_id, r.size_class))
    return rows


# =====================================================
# FIFO REMOVAL CANDIDATES
# =====================================================
async def oldest_batches_for_removal(
    db: AsyncSession,
    limit: int,
    as_of: Optional[datetime] = None,
) -> list[OldestBatchOut]:
    if limit is None or limit < 1:
        raise ValidationError("limit must be a positive integer", details={"limit": limit})

    now = as_utc(as_of) if as_of else utcnow()
    shares = await cell_shares(db)

    held: dict[int, list[CellShare]] = defaultdict(list)
    for share in shares:
        held[share.batch_id].append(share)
    if not held:
        return []

    # age is measured from the batch's earliest addition anywhere
    added = dict(
        (
            await db.execute(
                select(LedgerEntry.batch_id, func.min(LedgerEntry.entry_at))
                .where(
                    LedgerEntry.batch_id.in_(list(held)),
                    LedgerEntry.entry_type == LedgerEntryType.ADDITION,
                )
                .group_by(LedgerEntry.batch_id)
            )
        ).all()
    )
    batches = {
        b.id: b
        for b in (await db.execute(select(Batch).where(Batch.id.in_(list(held))))).scalars().all()
    }

    rows = []
    for b_id, members in held.items():
        first_added = added.get(b_id)
        first_added = as_utc(first_added) if first_added else min(s.first_entry_at for s in members)
        batch = batches[b_id]

        rows.append(
            OldestBatchOut(
                batch_id=b_id,
                batch_number=batch.batch_number,
                source_processing_record_id=batch.source_processing_record_id,
                first_added_at=first_added,
                days_in_storage=max((now - first_added).days, 0),
                remaining_quantity=sum(s.quantity for s in members),
                remaining_weight_kg=to_kg(sum((s.weight_kg for s in members), ZERO_KG)),
                size_classes=sorted({s.size_class for s in members}),
                location_ids=sorted({s.location_id for s in members}),
            )
        )

    # ties break on batch_number as text; generated numbers are zero-padded so they sort by id
    rows.sort(key=lambda r: (r.first_added_at, r.batch_number))
    return rows[:limit]


# =====================================================
# BATCH DETAILS
# =====================================================
async def batch_details(db: AsyncSession, batch_id: int) -> BatchDetailsOut:
    batch = await db.get(Batch, batch_id)
    if not batch:
        raise NotFoundError("Batch not found", ErrorCode.BATCH_NOT_FOUND, {"batch_id": batch_id})

    shares = await cell_shares(db, batch_id=batch_id)
    names = dict((await db.execute(select(StorageLocation.id, StorageLocation.name))).all())

    return BatchDetailsOut(
        id=batch.id,
        batch_number=batch.batch_number,
        source_processing_record_id=batch.source_processing_record_id,
        created_at=batch.created_at,
        remaining_quantity=sum(s.quantity for s in shares),
        remaining_weight_kg=to_kg(sum((s.weight_kg for s in shares), ZERO_KG)),
        cells=[
            BatchCellOut(
                location_id=s.location_id,
                location_name=names.get(s.location_id, ""),
                size_class=s.size_class,
                quantity=s.quantity,
                weight_kg=s.weight_kg,
            )
            for s in shares
        ],
    )


# =====================================================
# SIZE DEMAND
# =====================================================
async def size_demand_statistics(db: AsyncSession) -> list[SizeDemandOut]:
    orders = (
        await db.execute(
            select(OutletOrder)
            .where(
                OutletOrder.status.in_(DEMAND_ORDER_STATUSES),
                OutletOrder.requested_quantity_kg > 0,
            )
            .order_by(OutletOrder.order_date, OutletOrder.id)
        )
    ).scalars().all()

    stats: dict[int, dict] = {}
    for order in orders:
        order_date = as_utc(order.order_date)
        weight = to_kg(order.requested_quantity_kg)

        for size in sorted(set(order.requested_sizes or [])):
            s = stats.setdefault(
                int(size),
                {
                    "total_orders": 0,
                    "weight": ZERO_KG,
                    "outlets": set(),
                    "first": order_date,
                    "last": order_date,
                    "grades": Counter(),
                },
            )
            s["total_orders"] += 1
            s["weight"] += weight
            s["outlets"].add(order.outlet_id)
            s["first"] = min(s["first"], order_date)
            s["last"] = max(s["last"], order_date)
            if order.requested_grade:
                s["grades"][order.requested_grade] += 1

    rows = []
    for size, s in stats.items():
        if s["weight"] <= 0:
            continue

        span = (s["last"] - s["first"]).total_seconds() / 86400
        grades = sorted(s["grades"].items(), key=lambda g: (-g[1], g[0]))

        rows.append(
            SizeDemandOut(
                size_class=size,
                total_orders=s["total_orders"],
                total_weight_kg_requested=to_kg(s["weight"]),
                unique_outlets=len(s["outlets"]),
                first_order_date=s["first"],
                last_order_date=s["last"],
                days_span=math.ceil(span),
                most_requested_grade=grades[0][0] if grades else DEFAULT_GRADE,
            )
        )

    rows.sort(key=lambda r: (-r.total_weight_kg_requested, r.size_class))
    return rows


# =====================================================
# FIFO PLAN
# =====================================================
def fifo_plan(shares: list[CellShare], quantity: int) -> list[tuple[CellShare, int, Decimal]]:
    """Split `quantity` pieces over the shares, oldest first.

    Each step is (share, pieces, kg). A share emptied completely gives up all
    of its weight; a partial take carries its proportional weight.
    """
    plan = []
    remaining = quantity
    for share in sorted(shares, key=CellShare.fifo_key):
        if remaining <= 0:
            break
        take = min(share.quantity, remaining)
        plan.append((share, take, share_of_weight(share.weight_kg, take, share.quantity)))
        remaining -= take
    return plan
