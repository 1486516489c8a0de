from sqlalchemy import Column, Integer, String, Enum, Numeric, DateTime, JSON, Index
from fishstock.core.db import Base
from fishstock.models.base.mixins import TimestampMixin, AuditMixin
from fishstock.models.enums.outlet_order_status import OutletOrderStatus


class OutletOrder(Base, TimestampMixin, AuditMixin):
    """Order placed by an outlet. Owned by the ordering subsystem; read for demand statistics."""

    __tablename__ = "outlet_orders"

    id = Column(Integer, primary_key=True)
    outlet_id = Column(String(64), nullable=False, index=True)
    outlet_name = Column(String(150), nullable=True)
    requested_sizes = Column(JSON, nullable=False)
    requested_quantity_kg = Column(Numeric(12, 1), nullable=False)
    requested_grade = Column(String(50), nullable=True)
    order_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(Enum(OutletOrderStatus), nullable=False, default=OutletOrderStatus.pending)

    __table_args__ = (Index("ix_outlet_order_status_date", "status", "order_date"),)

    def __repr__(self):
        return f"<OutletOrder id={self.id} outlet={self.outlet_id} sizes={self.requested_sizes} status={self.status}>"
