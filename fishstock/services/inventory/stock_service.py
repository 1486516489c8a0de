from uuid import uuid4

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    InsufficientStockError,
    InsufficientCapacityError,
)
from fishstock.core.locks import serialized_locations
from fishstock.constants.error_codes import ErrorCode
from fishstock.constants.activity_codes import ActivityCode
from fishstock.constants.ledger_entry_type import LedgerEntryType, LedgerReferenceType

from fishstock.models.inventory.batch_models import Batch
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.models.inventory.stock_removal_models import StockRemoval
from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.models.orders.outlet_order_models import OutletOrder
from fishstock.models.enums.stock_removal_kind import StockRemovalKind
from fishstock.models.enums.storage_location import StorageLocationStatus

from fishstock.services.inventory import ledger_service, capacity_service, aggregator_service
from fishstock.schemas.inventory.stock_schemas import (
    BatchIngestCreate,
    BatchOut,
    LedgerEntryOut,
    DisposalCreate,
    DispatchCreate,
    StockRemovalOut,
    RemovedShare,
)
from fishstock.utils.activity_helpers import emit_activity
from fishstock.utils.decimal_utils import to_kg, ZERO_KG
from fishstock.utils.time_utils import utcnow
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# MAPPERS
# =====================================================
def _map_batch(batch: Batch, entries: list[LedgerEntry]) -> BatchOut:
    return BatchOut(
        id=batch.id,
        batch_number=batch.batch_number,
        source_processing_record_id=batch.source_processing_record_id,
        created_at=batch.created_at,
        created_by=batch.created_by,
        entries=[LedgerEntryOut.model_validate(e) for e in entries],
    )


def _map_removal(removal: StockRemoval, entries: list[LedgerEntry]) -> StockRemovalOut:
    return StockRemovalOut(
        id=removal.id,
        kind=removal.kind,
        location_id=removal.location_id,
        size_class=removal.size_class,
        quantity=removal.quantity,
        weight_kg=to_kg(removal.weight_kg),
        reason=removal.reason,
        outlet_order_id=removal.outlet_order_id,
        created_by=removal.created_by,
        created_at=removal.created_at,
        batches=[
            RemovedShare(
                batch_id=e.batch_id,
                batch_number=e.batch.batch_number,
                quantity=-e.quantity,
                weight_kg=-to_kg(e.weight_kg),
            )
            for e in entries
        ],
    )


async def _get_location(db: AsyncSession, location_id: int) -> StorageLocation:
    location = await db.get(StorageLocation, location_id, populate_existing=True)
    if not location:
        raise NotFoundError(
            "Storage location not found",
            ErrorCode.LOCATION_NOT_FOUND,
            {"location_id": location_id},
        )
    return location


async def _entries_for_reference(db: AsyncSession, reference_type: str, reference_id) -> list[LedgerEntry]:
    result = await db.execute(
        select(LedgerEntry)
        .where(
            LedgerEntry.reference_type == reference_type,
            LedgerEntry.reference_id == str(reference_id),
        )
        .order_by(LedgerEntry.entry_at, LedgerEntry.id)
    )
    return list(result.scalars().all())


# =====================================================
# INGEST FROM PROCESSING
# =====================================================
async def add_stock_from_processing(
    db: AsyncSession,
    payload: BatchIngestCreate,
    user,
) -> BatchOut:
    location = await _get_location(db, payload.location_id)
    if location.status != StorageLocationStatus.active:
        raise ValidationError(
            "Stock can only be added to an active location",
            ErrorCode.LOCATION_STATE_INVALID,
            {"location_id": location.id, "status": location.status.value},
        )

    exists = await db.scalar(
        select(Batch.id).where(Batch.source_processing_record_id == payload.processing_record_id)
    )
    if exists:
        raise ConflictError(
            "Processing record has already been ingested",
            ErrorCode.BATCH_ALREADY_INGESTED,
            {"processing_record_id": payload.processing_record_id, "batch_id": exists},
        )

    total_kg = to_kg(sum((to_kg(i.weight_kg) for i in payload.items), ZERO_KG))

    try:
        async with serialized_locations(db, [location.id]):
            room = await capacity_service.available_capacity(db, location.id)
            if room < total_kg:
                raise InsufficientCapacityError(
                    "Location does not have enough free capacity for this batch",
                    location_id=location.id,
                    required_kg=total_kg,
                    available_kg=room,
                )

            batch = Batch(
                batch_number=payload.batch_number or f"TMP-{uuid4().hex[:12]}",
                source_processing_record_id=payload.processing_record_id,
                created_by=user.id,
            )
            db.add(batch)
            await db.flush()

            if not payload.batch_number:
                batch.batch_number = f"BATCH-{batch.id:08d}"
                await db.flush()

            entry_at = payload.entry_at or utcnow()
            for item in payload.items:
                await ledger_service.append(
                    db,
                    batch_id=batch.id,
                    location_id=location.id,
                    size_class=item.size_class,
                    quantity=item.quantity,
                    weight_kg=item.weight_kg,
                    entry_type=LedgerEntryType.ADDITION,
                    entry_at=entry_at,
                    reference_type=LedgerReferenceType.PROCESSING.value,
                    reference_id=payload.processing_record_id,
                    created_by=user.id,
                )

            await emit_activity(
                db,
                user=user,
                code=ActivityCode.INGEST_BATCH,
                batch_number=batch.batch_number,
                weight_kg=total_kg,
                target_name=location.name,
            )
            await db.commit()

    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Batch number or processing record already exists",
            ErrorCode.BATCH_ALREADY_INGESTED,
            {"processing_record_id": payload.processing_record_id, "batch_number": payload.batch_number},
        )
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Batch ingested",
        extra={"batch_id": batch.id, "location_id": location.id, "weight_kg": str(total_kg)},
    )
    return await get_batch(db, batch.id)


async def get_batch(db: AsyncSession, batch_id: int) -> BatchOut:
    batch = await db.get(Batch, batch_id, populate_existing=True)
    if not batch:
        raise NotFoundError("Batch not found", ErrorCode.BATCH_NOT_FOUND, {"batch_id": batch_id})

    entries = await ledger_service.entries_for_batch(db, batch_id).to_list()
    return _map_batch(batch, entries)


# =====================================================
# FIFO REMOVALS
# =====================================================
async def _remove_fifo(
    db: AsyncSession,
    *,
    kind: StockRemovalKind,
    location_id: int,
    size_class: int,
    quantity: int,
    user,
    reason: str | None = None,
    outlet_order_id: int | None = None,
) -> StockRemovalOut:
    location = await _get_location(db, location_id)

    if outlet_order_id is not None and not await db.get(OutletOrder, outlet_order_id):
        raise NotFoundError(
            "Outlet order not found",
            ErrorCode.OUTLET_ORDER_NOT_FOUND,
            {"outlet_order_id": outlet_order_id},
        )

    entry_type = LedgerEntryType.DISPOSAL if kind == StockRemovalKind.disposal else LedgerEntryType.DISPATCH

    try:
        async with serialized_locations(db, [location_id]):
            shares = await aggregator_service.fifo_contributions(db, location_id, size_class)
            held_qty = sum(s.quantity for s in shares)
            if held_qty < quantity:
                held_kg = to_kg(sum((s.weight_kg for s in shares), ZERO_KG))
                raise InsufficientStockError(
                    f"Not enough size {size_class} stock at {location.name}",
                    location_id=location_id,
                    size_class=size_class,
                    requested_quantity=quantity,
                    available_quantity=held_qty,
                    requested_weight_kg=None,
                    available_weight_kg=held_kg,
                )

            plan = aggregator_service.fifo_plan(shares, quantity)

            removal = StockRemoval(
                kind=kind,
                location_id=location_id,
                size_class=size_class,
                quantity=quantity,
                weight_kg=to_kg(sum((kg for _, _, kg in plan), ZERO_KG)),
                reason=reason,
                outlet_order_id=outlet_order_id,
                created_by=user.id,
            )
            db.add(removal)
            await db.flush()

            removed_at = utcnow()
            for share, qty, kg in plan:
                await ledger_service.append(
                    db,
                    batch_id=share.batch_id,
                    location_id=location_id,
                    size_class=size_class,
                    quantity=-qty,
                    weight_kg=-kg,
                    entry_type=entry_type,
                    entry_at=removed_at,
                    reference_type=LedgerReferenceType.REMOVAL.value,
                    reference_id=str(removal.id),
                    created_by=user.id,
                )

            if kind == StockRemovalKind.disposal:
                await emit_activity(
                    db,
                    user=user,
                    code=ActivityCode.DISPOSE_STOCK,
                    quantity=quantity,
                    size_class=size_class,
                    target_name=location.name,
                    reason=reason,
                )
            else:
                await emit_activity(
                    db,
                    user=user,
                    code=ActivityCode.DISPATCH_STOCK,
                    quantity=quantity,
                    size_class=size_class,
                    target_name=location.name,
                )

            await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Stock removed",
        extra={
            "removal_id": removal.id,
            "kind": kind.value,
            "location_id": location_id,
            "size_class": size_class,
            "quantity": quantity,
            "batches": [s.batch_id for s, _, _ in plan],
        },
    )

    await db.refresh(removal)
    entries = await _entries_for_reference(db, LedgerReferenceType.REMOVAL.value, removal.id)
    return _map_removal(removal, entries)


async def dispose_stock(db: AsyncSession, payload: DisposalCreate, user) -> StockRemovalOut:
    return await _remove_fifo(
        db,
        kind=StockRemovalKind.disposal,
        location_id=payload.location_id,
        size_class=payload.size_class,
        quantity=payload.quantity,
        reason=payload.reason,
        user=user,
    )


async def dispatch_stock(db: AsyncSession, payload: DispatchCreate, user) -> StockRemovalOut:
    return await _remove_fifo(
        db,
        kind=StockRemovalKind.dispatch,
        location_id=payload.location_id,
        size_class=payload.size_class,
        quantity=payload.quantity,
        outlet_order_id=payload.outlet_order_id,
        user=user,
    )


async def list_removals(
    db: AsyncSession,
    *,
    kind: StockRemovalKind | None = None,
    location_id: int | None = None,
    page: int = 1,
    page_size: int = 20,
):
    base = select(StockRemoval)
    if kind:
        base = base.where(StockRemoval.kind == kind)
    if location_id:
        base = base.where(StockRemoval.location_id == location_id)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    removals = (
        await db.execute(
            base.order_by(StockRemoval.created_at.desc(), StockRemoval.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).scalars().all()

    items = []
    for removal in removals:
        entries = await _entries_for_reference(db, LedgerReferenceType.REMOVAL.value, removal.id)
        items.append(_map_removal(removal, entries))
    return total, items
