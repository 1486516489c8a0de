from datetime import datetime
from decimal import Decimal
from typing import AsyncIterator, Optional

from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.exceptions import ValidationError, InsufficientStockError
from fishstock.constants.error_codes import ErrorCode
from fishstock.constants.ledger_entry_type import (
    LedgerEntryType,
    POSITIVE_ENTRY_TYPES,
    NEGATIVE_ENTRY_TYPES,
)
from fishstock.models.inventory.batch_models import Batch
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.utils.decimal_utils import to_kg
from fishstock.utils.time_utils import utcnow, as_utc
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)

STREAM_CHUNK_SIZE = 500


# =====================================================
# APPEND
# =====================================================
async def append(
    db: AsyncSession,
    *,
    batch_id: int,
    location_id: int,
    size_class: int,
    quantity: int,
    weight_kg,
    entry_type: LedgerEntryType,
    entry_at: Optional[datetime] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    created_by: Optional[str] = None,
) -> LedgerEntry:
    """Validate and stage one ledger entry.

    Flushes but never commits: the caller owns the transaction and must hold
    the location lock for `location_id`.
    """
    weight = to_kg(weight_kg)

    # ------------------------------------
    # 0. Shape of the entry
    # ------------------------------------
    if size_class is None or size_class <= 0:
        raise ValidationError("Size class must be a positive integer", details={"size_class": size_class})

    if not quantity:
        raise ValidationError("Ledger entry quantity cannot be zero")

    if (quantity > 0 and weight < 0) or (quantity < 0 and weight > 0):
        raise ValidationError(
            "Weight sign must mirror the quantity sign",
            details={"quantity": quantity, "weight_kg": float(weight)},
        )

    if entry_type in POSITIVE_ENTRY_TYPES and quantity < 0:
        raise ValidationError(f"{entry_type.value} entries must have a positive quantity")

    if entry_type in NEGATIVE_ENTRY_TYPES and quantity > 0:
        raise ValidationError(f"{entry_type.value} entries must have a negative quantity")

    # ------------------------------------
    # 1. Referenced rows exist
    # ------------------------------------
    if not await db.scalar(select(Batch.id).where(Batch.id == batch_id)):
        raise ValidationError("Batch not found", ErrorCode.BATCH_NOT_FOUND, {"batch_id": batch_id})

    if not await db.scalar(select(StorageLocation.id).where(StorageLocation.id == location_id)):
        raise ValidationError("Storage location not found", ErrorCode.LOCATION_NOT_FOUND, {"location_id": location_id})

    # ------------------------------------
    # 2. Debits may not overdraw the batch share of the cell
    # ------------------------------------
    if quantity < 0:
        held_qty, held_kg = await batch_cell_balance(db, batch_id, location_id, size_class)
        left_qty, left_kg = held_qty + quantity, held_kg + weight

        if left_qty < 0 or left_kg < 0:
            raise InsufficientStockError(
                "Batch does not hold enough stock in this cell",
                location_id=location_id,
                size_class=size_class,
                requested_quantity=-quantity,
                available_quantity=held_qty,
                requested_weight_kg=-weight,
                available_weight_kg=held_kg,
            )

        if left_qty == 0 and left_kg != 0:
            raise ValidationError(
                "Removing every piece of a batch share must remove all of its weight",
                details={"batch_id": batch_id, "remaining_weight_kg": float(left_kg)},
            )

    entry = LedgerEntry(
        batch_id=batch_id,
        location_id=location_id,
        size_class=size_class,
        quantity=quantity,
        weight_kg=weight,
        entry_type=entry_type,
        entry_at=as_utc(entry_at) if entry_at else utcnow(),
        reference_type=reference_type,
        reference_id=reference_id,
        created_by=created_by,
    )
    db.add(entry)
    await db.flush()

    logger.debug(
        "Ledger entry appended",
        extra={
            "entry_id": entry.id,
            "batch_id": batch_id,
            "location_id": location_id,
            "size_class": size_class,
            "quantity": quantity,
            "entry_type": entry_type.value,
        },
    )
    return entry


# =====================================================
# SUMS
# =====================================================
async def sum_by_cell(
    db: AsyncSession,
    location_id: int,
    size_class: int,
) -> tuple[int, Decimal]:
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(LedgerEntry.quantity), 0),
                func.coalesce(func.sum(LedgerEntry.weight_kg), 0),
            ).where(
                LedgerEntry.location_id == location_id,
                LedgerEntry.size_class == size_class,
            )
        )
    ).one()
    return int(row[0]), to_kg(row[1])


async def batch_cell_balance(
    db: AsyncSession,
    batch_id: int,
    location_id: int,
    size_class: int,
) -> tuple[int, Decimal]:
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(LedgerEntry.quantity), 0),
                func.coalesce(func.sum(LedgerEntry.weight_kg), 0),
            ).where(
                LedgerEntry.batch_id == batch_id,
                LedgerEntry.location_id == location_id,
                LedgerEntry.size_class == size_class,
            )
        )
    ).one()
    return int(row[0]), to_kg(row[1])


# =====================================================
# ORDERED SEQUENCES
# =====================================================
class LedgerEntries:
    """Entries matching a filter, ordered by (entry_at, id).

    Every `async for` starts a fresh keyset-paged read, so the sequence can be
    walked again and always ends.
    """

    def __init__(self, db: AsyncSession, *criteria, chunk_size: int = STREAM_CHUNK_SIZE):
        self._db = db
        self._criteria = criteria
        self._chunk_size = chunk_size

    async def __aiter__(self) -> AsyncIterator[LedgerEntry]:
        last_at = None
        last_id = None

        while True:
            stmt = select(LedgerEntry).where(*self._criteria)
            if last_id is not None:
                stmt = stmt.where(
                    or_(
                        LedgerEntry.entry_at > last_at,
                        and_(LedgerEntry.entry_at == last_at, LedgerEntry.id > last_id),
                    )
                )
            stmt = stmt.order_by(LedgerEntry.entry_at, LedgerEntry.id).limit(self._chunk_size)

            chunk = (await self._db.execute(stmt)).scalars().all()
            for entry in chunk:
                yield entry

            if len(chunk) < self._chunk_size:
                return
            last_at, last_id = chunk[-1].entry_at, chunk[-1].id

    async def to_list(self) -> list[LedgerEntry]:
        return [entry async for entry in self]


def entries_for_batch(db: AsyncSession, batch_id: int) -> LedgerEntries:
    return LedgerEntries(db, LedgerEntry.batch_id == batch_id)


def entries_for_location(db: AsyncSession, location_id: int) -> LedgerEntries:
    return LedgerEntries(db, LedgerEntry.location_id == location_id)


def entries_for_cell(db: AsyncSession, location_id: int, size_class: int) -> LedgerEntries:
    return LedgerEntries(
        db,
        LedgerEntry.location_id == location_id,
        LedgerEntry.size_class == size_class,
    )
