from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.db import get_db
from fishstock.utils.check_roles import require_role
from fishstock.utils.response import success_response, page_response, APIResponse, PageData
from fishstock.models.enums.storage_location import StorageLocationStatus
from fishstock.services.inventory import reporting_service
from fishstock.services.inventory.storage_location_service import (
    create_location,
    list_locations,
    get_location,
    update_location,
)
from fishstock.schemas.inventory.storage_location_schemas import (
    StorageLocationCreate,
    StorageLocationUpdate,
    StorageLocationOut,
    StorageLocationUsageOut,
    CapacityStatusOut,
)

router = APIRouter(
    prefix="/inventory/locations",
    tags=["Storage Locations"],
)


# =========================
# CREATE
# =========================
@router.post("", response_model=APIResponse[StorageLocationOut])
async def create_location_api(
    payload: StorageLocationCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    location = await create_location(db, payload, user)
    return success_response("Location created successfully", location)


# =========================
# LIST
# =========================
@router.get("", response_model=APIResponse[PageData[StorageLocationUsageOut]])
async def list_locations_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
    status: StorageLocationStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    total, items = await list_locations(
        db=db,
        status=status,
        page=page,
        page_size=page_size,
    )
    return page_response("Locations fetched successfully", total, items, page, page_size)


# =========================
# CAPACITY
# =========================
@router.get("/capacity", response_model=APIResponse[List[CapacityStatusOut]])
async def capacity_status_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
):
    data = await reporting_service.capacity_status(db)
    return success_response("Capacity status fetched", data)


@router.get("/available-destinations", response_model=APIResponse[List[CapacityStatusOut]])
async def available_destinations_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
    exclude_location_id: int | None = Query(None),
    required_weight_kg: Decimal = Query(Decimal("0"), ge=0),
):
    data = await reporting_service.available_destinations(db, exclude_location_id, required_weight_kg)
    return success_response("Available destinations fetched", data)


# =========================
# GET / UPDATE
# =========================
@router.get("/{location_id}", response_model=APIResponse[StorageLocationUsageOut])
async def get_location_api(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
):
    return success_response("Location fetched", await get_location(db, location_id))


@router.patch("/{location_id}", response_model=APIResponse[StorageLocationOut])
async def update_location_api(
    location_id: int,
    payload: StorageLocationUpdate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin"])),
):
    location = await update_location(db, location_id, payload, user)
    return success_response("Location updated successfully", location)
