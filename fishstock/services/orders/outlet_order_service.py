from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fishstock.core.exceptions import NotFoundError
from fishstock.constants.error_codes import ErrorCode
from fishstock.constants.activity_codes import ActivityCode
from fishstock.models.orders.outlet_order_models import OutletOrder
from fishstock.models.enums.outlet_order_status import OutletOrderStatus
from fishstock.schemas.orders.outlet_order_schemas import OutletOrderCreate, OutletOrderOut
from fishstock.utils.activity_helpers import emit_activity
from fishstock.utils.decimal_utils import to_kg
from fishstock.utils.time_utils import utcnow
from fishstock.utils.logger import get_logger

logger = get_logger(__name__)


async def record_outlet_order(
    db: AsyncSession,
    payload: OutletOrderCreate,
    current_user,
) -> OutletOrderOut:
    order = OutletOrder(
        outlet_id=payload.outlet_id,
        outlet_name=payload.outlet_name,
        requested_sizes=list(payload.requested_sizes),
        requested_quantity_kg=to_kg(payload.requested_quantity_kg),
        requested_grade=payload.requested_grade,
        order_date=payload.order_date or utcnow(),
        status=payload.status,
        created_by=current_user.id,
    )
    db.add(order)

    try:
        await db.flush()
        await emit_activity(
            db,
            user=current_user,
            code=ActivityCode.RECORD_OUTLET_ORDER,
            target_name=f"#{order.id} ({order.outlet_id})",
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(order)
    logger.info("Outlet order recorded", extra={"order_id": order.id, "outlet_id": order.outlet_id})
    return OutletOrderOut.model_validate(order)


async def get_outlet_order(db: AsyncSession, order_id: int) -> OutletOrderOut:
    order = await db.get(OutletOrder, order_id)
    if not order:
        raise NotFoundError(
            "Outlet order not found",
            ErrorCode.OUTLET_ORDER_NOT_FOUND,
            {"outlet_order_id": order_id},
        )
    return OutletOrderOut.model_validate(order)


async def list_outlet_orders(
    db: AsyncSession,
    status: OutletOrderStatus | None,
    outlet_id: str | None,
    page: int,
    page_size: int,
):
    base = select(OutletOrder)
    if status:
        base = base.where(OutletOrder.status == status)
    if outlet_id:
        base = base.where(OutletOrder.outlet_id == outlet_id)

    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(OutletOrder.order_date.desc(), OutletOrder.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return total, [OutletOrderOut.model_validate(o) for o in result.scalars().all()]
