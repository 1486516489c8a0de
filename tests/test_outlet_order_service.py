from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaError
from sqlalchemy import select

from fishstock.constants.activity_codes import ActivityCode
from fishstock.core.exceptions import NotFoundError
from fishstock.models.enums.outlet_order_status import OutletOrderStatus
from fishstock.models.support.activity_models import UserActivity
from fishstock.schemas.orders.outlet_order_schemas import OutletOrderCreate
from fishstock.services.orders import outlet_order_service

pytestmark = pytest.mark.asyncio


def at(day: int, hour: int = 8) -> datetime:
    return datetime(2026, 1, day, hour, 0, tzinfo=timezone.utc)


async def test_record_order_normalizes_sizes_and_logs_activity(db, clerk):
    order = await outlet_order_service.record_outlet_order(
        db,
        OutletOrderCreate(
            outlet_id="outlet-9",
            requested_sizes=[5, 3, 5],
            requested_quantity_kg=Decimal("12.5"),
            order_date=at(4),
        ),
        clerk,
    )

    assert order.requested_sizes == [3, 5]
    assert order.requested_quantity_kg == Decimal("12.5")
    assert order.status == OutletOrderStatus.pending
    assert order.created_by == clerk.id

    codes = (await db.scalars(select(UserActivity.code))).all()
    assert codes == [ActivityCode.RECORD_OUTLET_ORDER.value]


async def test_list_filters_by_outlet_newest_first(db, make_order):
    older = await make_order("outlet-1", [3], "5.0", at(1))
    newer = await make_order("outlet-1", [4], "6.0", at(3))
    await make_order("outlet-2", [4], "7.0", at(2))

    total, items = await outlet_order_service.list_outlet_orders(
        db, None, "outlet-1", page=1, page_size=10
    )

    assert total == 2
    assert [o.id for o in items] == [newer.id, older.id]


async def test_list_pages(db, make_order):
    for day in range(1, 6):
        await make_order(f"outlet-{day}", [3], "1.0", at(day))

    total, items = await outlet_order_service.list_outlet_orders(db, None, None, page=2, page_size=2)

    assert total == 5
    assert [o.outlet_id for o in items] == ["outlet-3", "outlet-2"]


async def test_unknown_order(db):
    with pytest.raises(NotFoundError):
        await outlet_order_service.get_outlet_order(db, 123)


async def test_order_needs_at_least_one_size():
    with pytest.raises(SchemaError):
        OutletOrderCreate(outlet_id="outlet-1", requested_sizes=[], requested_quantity_kg=Decimal("1.0"))
