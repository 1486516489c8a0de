import enum

class OutletOrderStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    processing = "processing"
    dispatched = "dispatched"
    delivered = "delivered"
    cancelled = "cancelled"


# orders that count as real demand
DEMAND_ORDER_STATUSES = (
    OutletOrderStatus.confirmed,
    OutletOrderStatus.processing,
    OutletOrderStatus.dispatched,
    OutletOrderStatus.delivered,
)
