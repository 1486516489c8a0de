from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.db import get_db
from fishstock.utils.check_roles import require_role
from fishstock.utils.response import success_response, page_response, APIResponse, PageData
from fishstock.models.enums.transfer_status import TransferStatus
from fishstock.schemas.inventory.transfer_schemas import (
    TransferCreate,
    TransferReject,
    TransferOut,
)
from fishstock.services.inventory.transfer_service import (
    create_transfer,
    approve_transfer,
    reject_transfer,
    get_transfer,
    list_transfers,
)

router = APIRouter(prefix="/inventory/transfers", tags=["Transfers"])


@router.post("", response_model=APIResponse[TransferOut])
async def create_transfer_api(
    payload: TransferCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(["admin", "inventory"])),
):
    transfer = await create_transfer(db, payload, current_user)
    return success_response("Transfer request created", transfer)


@router.get("", response_model=APIResponse[PageData[TransferOut]])
async def list_transfers_api(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(["admin", "inventory"])),

    status: TransferStatus | None = Query(None),
    source_location_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    total, items = await list_transfers(
        db,
        status=status,
        source_location_id=source_location_id,
        page=page,
        page_size=page_size,
    )
    return page_response("Transfers fetched", total, items, page, page_size)


@router.get("/{transfer_id}", response_model=APIResponse[TransferOut])
async def get_transfer_api(
    transfer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(["admin", "inventory"])),
):
    return success_response("Transfer fetched", await get_transfer(db, transfer_id))


@router.post("/{transfer_id}/approve", response_model=APIResponse[TransferOut])
async def approve_transfer_api(
    transfer_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(["admin"])),
):
    transfer = await approve_transfer(db, transfer_id, current_user)
    return success_response("Transfer approved and completed", transfer)


@router.post("/{transfer_id}/reject", response_model=APIResponse[TransferOut])
async def reject_transfer_api(
    transfer_id: int,
    payload: TransferReject,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role(["admin"])),
):
    transfer = await reject_transfer(db, transfer_id, payload.reason, current_user)
    return success_response("Transfer rejected", transfer)
