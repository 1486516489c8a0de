from sqlalchemy import Column, Integer, String, Enum, Numeric, DateTime, ForeignKey, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from fishstock.core.db import Base
from fishstock.models.base.mixins import TimestampMixin
from fishstock.models.enums.transfer_status import TransferStatus


class TransferRequest(Base, TimestampMixin):
    """Proposed movement of stock between two locations, gated by approval."""

    __tablename__ = "transfer_requests"

    id = Column(Integer, primary_key=True)
    source_location_id = Column(Integer, ForeignKey("storage_locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    destination_location_id = Column(Integer, ForeignKey("storage_locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(Enum(TransferStatus), nullable=False, default=TransferStatus.pending, index=True)
    notes = Column(String(500), nullable=True)
    requested_by = Column(String(150), nullable=False, index=True)
    decided_by = Column(String(150), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    items = relationship(
        "TransferItem",
        back_populates="transfer",
        order_by="TransferItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("source_location_id != destination_location_id", name="ck_transfer_location_diff"),
        Index("ix_transfer_source_status", "source_location_id", "status"),
    )

    @property
    def size_classes(self) -> list[int]:
        return [i.size_class for i in self.items]

    def __repr__(self):
        return f"<TransferRequest id={self.id} {self.source_location_id}->{self.destination_location_id} status={self.status}>"


class TransferItem(Base):
    __tablename__ = "transfer_items"

    id = Column(Integer, primary_key=True)
    transfer_id = Column(Integer, ForeignKey("transfer_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    size_class = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    weight_kg = Column(Numeric(12, 1), nullable=False)

    transfer = relationship("TransferRequest", back_populates="items")

    __table_args__ = (
        CheckConstraint("size_class > 0", name="ck_transfer_item_size_positive"),
        CheckConstraint("quantity > 0", name="ck_transfer_item_qty_positive"),
        CheckConstraint("weight_kg > 0", name="ck_transfer_item_weight_positive"),
        UniqueConstraint("transfer_id", "size_class", name="uq_transfer_item_size"),
    )

    def __repr__(self):
        return f"<TransferItem transfer={self.transfer_id} size={self.size_class} qty={self.quantity} kg={self.weight_kg}>"
