from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.db import get_db
from fishstock.core.config import OLDEST_BATCHES_DEFAULT_LIMIT
from fishstock.utils.check_roles import require_role
from fishstock.utils.response import success_response, APIResponse
from fishstock.services.inventory import reporting_service
from fishstock.schemas.inventory.report_schemas import (
    InventoryCellOut,
    OldestBatchOut,
    SizeDemandOut,
)

router = APIRouter(
    prefix="/inventory",
    tags=["Inventory Reports"],
)


# =========================
# STOCK BY LOCATION
# =========================
@router.get("/by-location", response_model=APIResponse[List[InventoryCellOut]])
async def inventory_by_location_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
):
    data = await reporting_service.inventory_by_location(db)
    return success_response("Inventory fetched successfully", data)


# =========================
# FIFO CANDIDATES
# =========================
@router.get("/oldest-batches", response_model=APIResponse[List[OldestBatchOut]])
async def oldest_batches_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
    limit: int = Query(OLDEST_BATCHES_DEFAULT_LIMIT, ge=1, le=100),
):
    data = await reporting_service.oldest_batches(db, limit)
    return success_response("Oldest batches fetched successfully", data)


# =========================
# DEMAND
# =========================
@router.get("/size-demand-statistics", response_model=APIResponse[List[SizeDemandOut]])
async def size_demand_statistics_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory", "outlet"])),
):
    data = await reporting_service.size_demand_statistics(db)
    return success_response("Size demand statistics fetched successfully", data)
