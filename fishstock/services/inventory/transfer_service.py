from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fishstock.core.exceptions import (
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
    InsufficientStockError,
    InsufficientCapacityError,
    DuplicatePendingTransferError,
)
from fishstock.core.locks import serialized_locations
from fishstock.constants.error_codes import ErrorCode
from fishstock.constants.activity_codes import ActivityCode
from fishstock.constants.ledger_entry_type import LedgerEntryType, LedgerReferenceType

from fishstock.models.inventory.transfer_models import TransferRequest, TransferItem
from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.models.enums.transfer_status import TransferStatus, IN_FLIGHT_TRANSFER_STATUSES
from fishstock.models.enums.storage_location import StorageLocationStatus

from fishstock.services.inventory import ledger_service, capacity_service, aggregator_service
from fishstock.schemas.inventory.transfer_schemas import TransferCreate, TransferOut, TransferItemOut
from fishstock.utils.activity_helpers import emit_activity
from fishstock.utils.decimal_utils import to_kg, ZERO_KG
from fishstock.utils.time_utils import utcnow
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_TRANSITIONS = {
    TransferStatus.pending: {TransferStatus.approved, TransferStatus.rejected},
    TransferStatus.approved: {TransferStatus.completed},
}

# failures that turn an approval into a persisted rejection
REVALIDATION_ERRORS = (InsufficientStockError, InsufficientCapacityError, ValidationError)


# =====================================================
# MAPPER
# =====================================================
def _map_transfer(t: TransferRequest) -> TransferOut:
    return TransferOut(
        id=t.id,
        source_location_id=t.source_location_id,
        destination_location_id=t.destination_location_id,
        status=t.status,
        items=[TransferItemOut.model_validate(i) for i in t.items],
        total_weight_kg=to_kg(sum((to_kg(i.weight_kg) for i in t.items), ZERO_KG)),
        notes=t.notes,
        requested_by=t.requested_by,
        decided_by=t.decided_by,
        decided_at=t.decided_at,
        rejection_reason=t.rejection_reason,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


# =====================================================
# HELPERS
# =====================================================
async def _load_transfer(db: AsyncSession, transfer_id: int, for_update: bool = False) -> TransferRequest:
    stmt = (
        select(TransferRequest)
        .options(selectinload(TransferRequest.items))
        .where(TransferRequest.id == transfer_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()

    transfer = await db.scalar(stmt)
    if not transfer:
        raise NotFoundError(
            "Transfer request not found",
            ErrorCode.TRANSFER_NOT_FOUND,
            {"transfer_id": transfer_id},
        )
    return transfer


def _ensure_transition(transfer: TransferRequest, to_status: TransferStatus) -> None:
    if to_status not in ALLOWED_TRANSITIONS.get(transfer.status, set()):
        raise InvalidTransitionError(
            f"Cannot move a {transfer.status.value} transfer to {to_status.value}",
            {"transfer_id": transfer.id, "status": transfer.status.value, "requested": to_status.value},
        )


def _transition(transfer: TransferRequest, to_status: TransferStatus) -> None:
    _ensure_transition(transfer, to_status)
    transfer.status = to_status


async def _check_locations(db: AsyncSession, source_id: int, destination_id: int):
    if source_id == destination_id:
        raise ValidationError(
            "Source and destination locations must differ",
            ErrorCode.TRANSFER_INVALID_LOCATION,
            {"location_id": source_id},
        )

    source = await db.get(StorageLocation, source_id, populate_existing=True)
    destination = await db.get(StorageLocation, destination_id, populate_existing=True)

    for loc, loc_id in ((source, source_id), (destination, destination_id)):
        if not loc:
            raise NotFoundError(
                "Storage location not found",
                ErrorCode.LOCATION_NOT_FOUND,
                {"location_id": loc_id},
            )

    if source.status == StorageLocationStatus.inactive:
        raise ValidationError(
            "Source location is inactive",
            ErrorCode.LOCATION_STATE_INVALID,
            {"location_id": source_id, "status": source.status.value},
        )

    if destination.status != StorageLocationStatus.active:
        raise ValidationError(
            "Destination location is not accepting stock",
            ErrorCode.LOCATION_STATE_INVALID,
            {"location_id": destination_id, "status": destination.status.value},
        )


async def _check_capacity(db: AsyncSession, destination_id: int, required_kg: Decimal):
    room = await capacity_service.available_capacity(db, destination_id)
    if room < required_kg:
        raise InsufficientCapacityError(
            "Destination does not have enough free capacity",
            location_id=destination_id,
            required_kg=required_kg,
            available_kg=room,
        )


async def _find_overlapping(db: AsyncSession, source_id: int, sizes: set[int]):
    in_flight = (
        await db.execute(
            select(TransferRequest)
            .options(selectinload(TransferRequest.items))
            .where(
                TransferRequest.source_location_id == source_id,
                TransferRequest.status.in_(IN_FLIGHT_TRANSFER_STATUSES),
            )
            .order_by(TransferRequest.id)
        )
    ).scalars().all()

    for existing in in_flight:
        overlap = sizes.intersection(existing.size_classes)
        if overlap:
            return existing, sorted(overlap)
    return None, []


# =====================================================
# CREATE TRANSFER
# =====================================================
async def create_transfer(
    db: AsyncSession,
    payload: TransferCreate,
    user,
) -> TransferOut:
    source_id = payload.source_location_id
    destination_id = payload.destination_location_id

    await _check_locations(db, source_id, destination_id)

    try:
        async with serialized_locations(db, [source_id, destination_id]):
            # ------------------------------------
            # 1. Stock present at source
            # ------------------------------------
            for item in payload.items:
                qty, kg = await ledger_service.sum_by_cell(db, source_id, item.size_class)
                if qty < item.quantity or kg < to_kg(item.weight_kg):
                    raise InsufficientStockError(
                        f"Not enough size {item.size_class} stock at source location",
                        location_id=source_id,
                        size_class=item.size_class,
                        requested_quantity=item.quantity,
                        available_quantity=qty,
                        requested_weight_kg=to_kg(item.weight_kg),
                        available_weight_kg=kg,
                    )

            # ------------------------------------
            # 2. One in-flight request per source + size
            # ------------------------------------
            sizes = {i.size_class for i in payload.items}
            existing, overlap = await _find_overlapping(db, source_id, sizes)
            if existing:
                raise DuplicatePendingTransferError(
                    "A transfer for these sizes is already in flight from this location",
                    existing_transfer_id=existing.id,
                    size_classes=overlap,
                )

            # ------------------------------------
            # 3. Destination capacity, on the weight FIFO would move
            # ------------------------------------
            planned_kg = []
            for item in payload.items:
                _, kg = await _plan_item(db, source_id, item.size_class, item.quantity)
                planned_kg.append(kg)

            total_kg = to_kg(sum(planned_kg, ZERO_KG))
            await _check_capacity(db, destination_id, total_kg)

            # ------------------------------------
            # 4. Persist as pending
            # ------------------------------------
            transfer = TransferRequest(
                source_location_id=source_id,
                destination_location_id=destination_id,
                status=TransferStatus.pending,
                notes=payload.notes,
                requested_by=user.id,
                items=[
                    TransferItem(
                        position=pos,
                        size_class=i.size_class,
                        quantity=i.quantity,
                        weight_kg=kg,
                    )
                    for pos, (i, kg) in enumerate(zip(payload.items, planned_kg))
                ],
            )
            db.add(transfer)
            await db.flush()

            await emit_activity(
                db,
                user=user,
                code=ActivityCode.CREATE_TRANSFER,
                target_name=f"#{transfer.id}",
            )

            await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Transfer requested",
        extra={"transfer_id": transfer.id, "source": source_id, "destination": destination_id, "weight_kg": str(total_kg)},
    )
    return _map_transfer(await _load_transfer(db, transfer.id))


# =====================================================
# APPROVE (AND COMPLETE)
# =====================================================
async def _plan_item(db: AsyncSession, source_id: int, size_class: int, quantity: int):
    """FIFO plan for one size at the source and the weight it carries."""
    shares = await aggregator_service.fifo_contributions(db, source_id, size_class)
    held_qty = sum(s.quantity for s in shares)
    if held_qty < quantity:
        raise InsufficientStockError(
            f"Size {size_class} stock at source no longer covers the transfer",
            location_id=source_id,
            size_class=size_class,
            requested_quantity=quantity,
            available_quantity=held_qty,
        )

    plan = aggregator_service.fifo_plan(shares, quantity)
    return plan, to_kg(sum((kg for _, _, kg in plan), ZERO_KG))


async def _plan_moves(db: AsyncSession, transfer: TransferRequest):
    """FIFO plan for every item, validated against current stock and capacity."""
    moves = []
    item_kg = {}

    for item in transfer.items:
        plan, kg = await _plan_item(db, transfer.source_location_id, item.size_class, item.quantity)
        moves.extend((item.size_class, share.batch_id, qty, share_kg) for share, qty, share_kg in plan)
        item_kg[item.id] = kg

    total_kg = to_kg(sum(item_kg.values(), ZERO_KG))
    await _check_capacity(db, transfer.destination_location_id, total_kg)
    return moves, item_kg, total_kg


async def approve_transfer(
    db: AsyncSession,
    transfer_id: int,
    user,
) -> TransferOut:
    transfer = await _load_transfer(db, transfer_id)
    locations = [transfer.source_location_id, transfer.destination_location_id]

    try:
        async with serialized_locations(db, locations):
            transfer = await _load_transfer(db, transfer_id, for_update=True)
            _ensure_transition(transfer, TransferStatus.approved)

            try:
                await _check_locations(db, *locations)
                moves, item_kg, total_kg = await _plan_moves(db, transfer)
            except REVALIDATION_ERRORS as exc:
                _transition(transfer, TransferStatus.rejected)
                transfer.rejection_reason = exc.detail
                transfer.decided_by = user.id
                transfer.decided_at = utcnow()

                await emit_activity(
                    db,
                    user=user,
                    code=ActivityCode.REJECT_TRANSFER,
                    target_name=f"#{transfer.id}",
                    reason=exc.detail,
                )
                await db.commit()

                logger.warning(
                    "Transfer rejected on approval",
                    extra={"transfer_id": transfer.id, "reason": exc.detail, "error_code": exc.error_code.value},
                )
                raise

            _transition(transfer, TransferStatus.approved)
            moved_at = utcnow()
            for size_class, batch_id, qty, kg in moves:
                await ledger_service.append(
                    db,
                    batch_id=batch_id,
                    location_id=transfer.source_location_id,
                    size_class=size_class,
                    quantity=-qty,
                    weight_kg=-kg,
                    entry_type=LedgerEntryType.TRANSFER_OUT,
                    entry_at=moved_at,
                    reference_type=LedgerReferenceType.TRANSFER.value,
                    reference_id=str(transfer.id),
                    created_by=user.id,
                )
                await ledger_service.append(
                    db,
                    batch_id=batch_id,
                    location_id=transfer.destination_location_id,
                    size_class=size_class,
                    quantity=qty,
                    weight_kg=kg,
                    entry_type=LedgerEntryType.TRANSFER_IN,
                    entry_at=moved_at,
                    reference_type=LedgerReferenceType.TRANSFER.value,
                    reference_id=str(transfer.id),
                    created_by=user.id,
                )

            # items carry what actually moved, not the estimate made at request time
            for item in transfer.items:
                item.weight_kg = item_kg[item.id]

            _transition(transfer, TransferStatus.completed)
            transfer.decided_by = user.id
            transfer.decided_at = moved_at

            await emit_activity(
                db,
                user=user,
                code=ActivityCode.COMPLETE_TRANSFER,
                target_name=f"#{transfer.id}",
            )
            await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Transfer completed",
        extra={"transfer_id": transfer_id, "entries": len(moves) * 2, "weight_kg": str(total_kg)},
    )
    return _map_transfer(await _load_transfer(db, transfer_id))


# =====================================================
# REJECT
# =====================================================
async def reject_transfer(
    db: AsyncSession,
    transfer_id: int,
    reason: str,
    user,
) -> TransferOut:
    transfer = await _load_transfer(db, transfer_id)
    locations = [transfer.source_location_id, transfer.destination_location_id]

    try:
        async with serialized_locations(db, locations):
            transfer = await _load_transfer(db, transfer_id, for_update=True)
            _transition(transfer, TransferStatus.rejected)
            transfer.rejection_reason = reason
            transfer.decided_by = user.id
            transfer.decided_at = utcnow()

            await emit_activity(
                db,
                user=user,
                code=ActivityCode.REJECT_TRANSFER,
                target_name=f"#{transfer.id}",
                reason=reason,
            )
            await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Transfer rejected", extra={"transfer_id": transfer_id, "reason": reason})
    return _map_transfer(await _load_transfer(db, transfer_id))


# =====================================================
# READ
# =====================================================
async def get_transfer(db: AsyncSession, transfer_id: int) -> TransferOut:
    return _map_transfer(await _load_transfer(db, transfer_id))


async def list_transfers(
    db: AsyncSession,
    *,
    status: Optional[TransferStatus] = None,
    source_location_id: Optional[int] = None,
    page: int = 1,
    page_size: int = 20,
):
    base = select(TransferRequest)

    if status:
        base = base.where(TransferRequest.status == status)
    if source_location_id:
        base = base.where(TransferRequest.source_location_id == source_location_id)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))

    result = await db.execute(
        base.options(selectinload(TransferRequest.items))
        .order_by(TransferRequest.created_at.desc(), TransferRequest.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return total, [_map_transfer(t) for t in result.scalars().all()]
