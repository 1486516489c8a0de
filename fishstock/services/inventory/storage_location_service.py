from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.exceptions import ValidationError, NotFoundError, ConflictError
from fishstock.core.locks import serialized_locations
from fishstock.constants.error_codes import ErrorCode
from fishstock.constants.activity_codes import ActivityCode
from fishstock.models.inventory.storage_location_models import StorageLocation
from fishstock.models.enums.storage_location import StorageLocationStatus
from fishstock.services.inventory import capacity_service
from fishstock.schemas.inventory.storage_location_schemas import (
    StorageLocationCreate,
    StorageLocationUpdate,
    StorageLocationOut,
    StorageLocationUsageOut,
)
from fishstock.utils.activity_helpers import emit_activity
from fishstock.utils.decimal_utils import to_kg, percent
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)


# =====================================================
# MAPPERS
# =====================================================
def _map_location(loc: StorageLocation) -> StorageLocationOut:
    return StorageLocationOut.model_validate(loc)


def _map_with_usage(loc: StorageLocation, used_kg) -> StorageLocationUsageOut:
    capacity = to_kg(loc.capacity_kg)
    used = to_kg(used_kg)
    return StorageLocationUsageOut(
        **_map_location(loc).model_dump(),
        current_usage_kg=used,
        available_capacity_kg=capacity - used,
        utilization_percent=percent(used, capacity),
    )


async def _get(db: AsyncSession, location_id: int) -> StorageLocation:
    location = await db.get(StorageLocation, location_id, populate_existing=True)
    if not location:
        raise NotFoundError(
            "Storage location not found",
            ErrorCode.LOCATION_NOT_FOUND,
            {"location_id": location_id},
        )
    return location


# =====================================================
# CREATE LOCATION
# =====================================================
async def create_location(
    db: AsyncSession,
    payload: StorageLocationCreate,
    current_user,
) -> StorageLocationOut:
    location = StorageLocation(
        name=payload.name.strip(),
        location_type=payload.location_type,
        capacity_kg=to_kg(payload.capacity_kg),
        status=payload.status,
        description=payload.description,
        temperature_celsius=payload.temperature_celsius,
        created_by=current_user.id,
    )
    db.add(location)

    try:
        await emit_activity(
            db,
            user=current_user,
            code=ActivityCode.CREATE_LOCATION,
            target_name=location.name,
        )
        await db.commit()

    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Storage location name already exists",
            ErrorCode.LOCATION_NAME_EXISTS,
            {"name": payload.name},
        )

    await db.refresh(location)
    logger.info("Storage location created", extra={"location_id": location.id, "location_name": location.name})
    return _map_location(location)


# =====================================================
# LIST / GET
# =====================================================
async def list_locations(
    db: AsyncSession,
    status: StorageLocationStatus | None,
    page: int,
    page_size: int,
):
    base = select(StorageLocation)
    if status:
        base = base.where(StorageLocation.status == status)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))

    result = await db.execute(
        base.order_by(StorageLocation.name)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    locations = result.scalars().all()

    usage = {row.location_id: row.current_usage_kg for row in await capacity_service.capacity_status(db)}
    return total, [_map_with_usage(loc, usage.get(loc.id, 0)) for loc in locations]


async def get_location(db: AsyncSession, location_id: int) -> StorageLocationUsageOut:
    location = await _get(db, location_id)
    used = await capacity_service.current_usage(db, location_id)
    return _map_with_usage(location, used)


# =====================================================
# UPDATE LOCATION (OPTIMISTIC LOCK)
# =====================================================
async def update_location(
    db: AsyncSession,
    location_id: int,
    payload: StorageLocationUpdate,
    current_user,
) -> StorageLocationOut:
    existing = await _get(db, location_id)

    updates = payload.model_dump(exclude_unset=True, exclude={"version"})
    if "capacity_kg" in updates and updates["capacity_kg"] is not None:
        updates["capacity_kg"] = to_kg(updates["capacity_kg"])
    if not updates:
        raise ValidationError("No changes provided")

    changes: list[str] = []
    for field, value in updates.items():
        old = getattr(existing, field)
        if old != value:
            changes.append(f"{field}: {old} -> {value}")

    if not changes:
        raise ValidationError("No actual changes detected")

    try:
        async with serialized_locations(db, [location_id]):
            new_capacity = updates.get("capacity_kg")
            if new_capacity is not None:
                used = await capacity_service.current_usage(db, location_id)
                if new_capacity < used:
                    raise ValidationError(
                        "Capacity cannot drop below the stock currently held",
                        ErrorCode.LOCATION_STATE_INVALID,
                        {"location_id": location_id, "capacity_kg": float(new_capacity), "current_usage_kg": float(used)},
                    )

            result = await db.execute(
                update(StorageLocation)
                .where(
                    StorageLocation.id == location_id,
                    StorageLocation.version == payload.version,
                )
                .values(
                    **updates,
                    version=StorageLocation.version + 1,
                    updated_by=current_user.id,
                )
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                raise ConflictError(
                    "Location was modified by another process",
                    ErrorCode.LOCATION_VERSION_CONFLICT,
                    {"location_id": location_id, "version": payload.version},
                )

            await emit_activity(
                db,
                user=current_user,
                code=ActivityCode.UPDATE_LOCATION,
                target_name=existing.name,
                changes=", ".join(changes),
            )
            await db.commit()

    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            "Storage location name already exists",
            ErrorCode.LOCATION_NAME_EXISTS,
            {"name": updates.get("name")},
        )
    except Exception:
        await db.rollback()
        raise

    logger.info("Storage location updated", extra={"location_id": location_id, "changes": changes})
    return _map_location(await _get(db, location_id))
