from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.db import get_db
from fishstock.utils.check_roles import require_role
from fishstock.utils.response import success_response, page_response, APIResponse, PageData
from fishstock.models.enums.stock_removal_kind import StockRemovalKind
from fishstock.schemas.inventory.stock_schemas import (
    BatchIngestCreate,
    BatchOut,
    BatchDetailsOut,
    DisposalCreate,
    DispatchCreate,
    StockRemovalOut,
)
from fishstock.services.inventory import stock_service, reporting_service

router = APIRouter(prefix="/inventory", tags=["Stock Movements"])


# =========================
# INGEST
# =========================
@router.post("/batches", response_model=APIResponse[BatchOut])
async def add_stock_from_processing_api(
    payload: BatchIngestCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory", "processing"])),
):
    batch = await stock_service.add_stock_from_processing(db, payload, user)
    return success_response("Batch added to storage", batch)


@router.get("/batches/{batch_id}", response_model=APIResponse[BatchDetailsOut])
async def get_batch_api(
    batch_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
):
    return success_response("Batch fetched", await reporting_service.batch_details(db, batch_id))


@router.get("/batches/{batch_id}/entries", response_model=APIResponse[BatchOut])
async def get_batch_entries_api(
    batch_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
):
    return success_response("Batch ledger fetched", await stock_service.get_batch(db, batch_id))


# =========================
# REMOVALS
# =========================
@router.post("/disposals", response_model=APIResponse[StockRemovalOut])
async def dispose_stock_api(
    payload: DisposalCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
):
    removal = await stock_service.dispose_stock(db, payload, user)
    return success_response("Stock disposed", removal)


@router.post("/dispatches", response_model=APIResponse[StockRemovalOut])
async def dispatch_stock_api(
    payload: DispatchCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
):
    removal = await stock_service.dispatch_stock(db, payload, user)
    return success_response("Stock dispatched", removal)


@router.get("/removals", response_model=APIResponse[PageData[StockRemovalOut]])
async def list_removals_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory"])),
    kind: StockRemovalKind | None = Query(None),
    location_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    total, items = await stock_service.list_removals(
        db, kind=kind, location_id=location_id, page=page, page_size=page_size
    )
    return page_response("Stock removals fetched", total, items, page, page_size)
