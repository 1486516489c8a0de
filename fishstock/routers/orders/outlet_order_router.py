from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.db import get_db
from fishstock.utils.check_roles import require_role
from fishstock.utils.response import success_response, page_response, APIResponse, PageData
from fishstock.models.enums.outlet_order_status import OutletOrderStatus
from fishstock.schemas.orders.outlet_order_schemas import OutletOrderCreate, OutletOrderOut
from fishstock.services.orders.outlet_order_service import (
    record_outlet_order,
    get_outlet_order,
    list_outlet_orders,
)

router = APIRouter(prefix="/outlet-orders", tags=["Outlet Orders"])


@router.post("", response_model=APIResponse[OutletOrderOut])
async def record_outlet_order_api(
    payload: OutletOrderCreate,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory", "outlet"])),
):
    order = await record_outlet_order(db, payload, user)
    return success_response("Outlet order recorded", order)


@router.get("", response_model=APIResponse[PageData[OutletOrderOut]])
async def list_outlet_orders_api(
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory", "outlet"])),
    status: OutletOrderStatus | None = Query(None),
    outlet_id: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    total, items = await list_outlet_orders(db, status, outlet_id, page, page_size)
    return page_response("Outlet orders fetched", total, items, page, page_size)


@router.get("/{order_id}", response_model=APIResponse[OutletOrderOut])
async def get_outlet_order_api(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(["admin", "inventory", "outlet"])),
):
    return success_response("Outlet order fetched", await get_outlet_order(db, order_id))
