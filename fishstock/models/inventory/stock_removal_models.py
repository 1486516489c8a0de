from sqlalchemy import Column, Integer, String, Enum, Numeric, ForeignKey, CheckConstraint, Index
from fishstock.core.db import Base
from fishstock.models.base.mixins import TimestampMixin, AuditMixin
from fishstock.models.enums.stock_removal_kind import StockRemovalKind


class StockRemoval(Base, TimestampMixin, AuditMixin):
    """Header of one FIFO disposal or dispatch. Its ledger entries carry the batch split."""

    __tablename__ = "stock_removals"

    id = Column(Integer, primary_key=True)
    kind = Column(Enum(StockRemovalKind), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("storage_locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    size_class = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    weight_kg = Column(Numeric(12, 1), nullable=False, default=0)
    reason = Column(String(255), nullable=True)
    outlet_order_id = Column(Integer, ForeignKey("outlet_orders.id", ondelete="SET NULL"), nullable=True, index=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_removal_qty_positive"),
        Index("ix_stock_removal_cell", "location_id", "size_class"),
    )

    def __repr__(self):
        return f"<StockRemoval id={self.id} kind={self.kind} loc={self.location_id} size={self.size_class} qty={self.quantity}>"
