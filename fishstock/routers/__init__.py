# fishstock/routers/__init__.py

from .inventory.report_router import router as report_router
from .inventory.transfer_router import router as transfer_router
from .inventory.stock_router import router as stock_router
from .inventory.storage_location_router import router as storage_location_router

from .orders.outlet_order_router import router as outlet_order_router


__all__ = [
"report_router",
"transfer_router",
"stock_router",
"storage_location_router",

"outlet_order_router",
]
