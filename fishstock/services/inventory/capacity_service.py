from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.exceptions import NotFoundError
from fishstock.constants.error_codes import ErrorCode
from fishstock.models.inventory.ledger_entry_models import LedgerEntry
from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.models.enums.storage_location import StorageLocationStatus
from fishstock.schemas.inventory.storage_location_schemas import CapacityStatusOut
from fishstock.utils.decimal_utils import to_kg, percent, ZERO_KG


# =====================================================
# USAGE
# =====================================================
async def _usage_by_location(db: AsyncSession, location_id: int | None = None) -> dict[int, Decimal]:
    """Sum of the positive (batch, size) net weights held at each location."""
    stmt = select(
        LedgerEntry.location_id,
        func.sum(LedgerEntry.weight_kg),
    ).group_by(
        LedgerEntry.location_id,
        LedgerEntry.batch_id,
        LedgerEntry.size_class,
    )
    if location_id is not None:
        stmt = stmt.where(LedgerEntry.location_id == location_id)

    usage: dict[int, Decimal] = defaultdict(lambda: ZERO_KG)
    for loc_id, net_kg in (await db.execute(stmt)).all():
        net_kg = to_kg(net_kg)
        if net_kg > 0:
            usage[loc_id] += net_kg
    return usage


async def _get_location(db: AsyncSession, location_id: int) -> StorageLocation:
    location = await db.get(StorageLocation, location_id)
    if not location:
        raise NotFoundError(
            "Storage location not found",
            ErrorCode.LOCATION_NOT_FOUND,
            {"location_id": location_id},
        )
    return location


async def current_usage(db: AsyncSession, location_id: int) -> Decimal:
    await _get_location(db, location_id)
    usage = await _usage_by_location(db, location_id)
    return to_kg(usage[location_id])


async def available_capacity(db: AsyncSession, location_id: int) -> Decimal:
    """Room left at the location. Zero or negative when full; never raises for that."""
    location = await _get_location(db, location_id)
    usage = await _usage_by_location(db, location_id)
    return to_kg(location.capacity_kg) - to_kg(usage[location_id])


# =====================================================
# STATUS
# =====================================================
def _map_status(location: StorageLocation, used_kg: Decimal) -> CapacityStatusOut:
    capacity = to_kg(location.capacity_kg)
    used = to_kg(used_kg)
    return CapacityStatusOut(
        location_id=location.id,
        name=location.name,
        location_type=location.location_type,
        status=location.status,
        capacity_kg=capacity,
        current_usage_kg=used,
        available_capacity_kg=capacity - used,
        utilization_percent=percent(used, capacity),
    )


async def capacity_status(db: AsyncSession) -> list[CapacityStatusOut]:
    usage = await _usage_by_location(db)
    locations = (
        await db.execute(select(StorageLocation).order_by(StorageLocation.name))
    ).scalars().all()
    return [_map_status(loc, usage[loc.id]) for loc in locations]


async def available_destinations(
    db: AsyncSession,
    *,
    exclude_location_id: int | None = None,
    required_weight_kg=ZERO_KG,
) -> list[CapacityStatusOut]:
    """Active locations, other than the source, that can take the weight."""
    required = to_kg(required_weight_kg)
    rows = await capacity_status(db)
    return [
        row
        for row in rows
        if row.status == StorageLocationStatus.active
        and row.location_id != exclude_location_id
        and row.available_capacity_kg >= required
    ]
