import logging

from sqlalchemy import Column, Integer, String, Enum, Numeric, DateTime, ForeignKey, CheckConstraint, Index, event
from sqlalchemy.orm import relationship
from fishstock.core.db import Base
from fishstock.core.exceptions import ConsistencyError
from fishstock.models.base.mixins import TimestampMixin
from fishstock.constants.ledger_entry_type import LedgerEntryType

logger = logging.getLogger(__name__)


class LedgerEntry(Base, TimestampMixin):
    """Signed stock movement against a (batch, location, size) cell. APPEND-ONLY."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="RESTRICT"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("storage_locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    size_class = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    weight_kg = Column(Numeric(12, 1), nullable=False)
    entry_type = Column(Enum(LedgerEntryType), nullable=False)
    entry_at = Column(DateTime(timezone=True), nullable=False, index=True)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(64), nullable=True)
    created_by = Column(String(150), nullable=True)

    batch = relationship("Batch", back_populates="ledger_entries", lazy="joined")
    location = relationship("StorageLocation", back_populates="ledger_entries", lazy="noload")

    __table_args__ = (
        CheckConstraint("size_class > 0", name="ck_ledger_size_class_positive"),
        CheckConstraint("quantity <> 0", name="ck_ledger_quantity_non_zero"),
        CheckConstraint(
            "(quantity > 0 AND weight_kg >= 0) OR (quantity < 0 AND weight_kg <= 0)",
            name="ck_ledger_weight_sign",
        ),
        Index("ix_ledger_cell", "location_id", "size_class"),
        Index("ix_ledger_batch_cell", "batch_id", "location_id", "size_class"),
        Index("ix_ledger_reference", "reference_type", "reference_id"),
    )

    def __repr__(self):
        return (
            f"<LedgerEntry id={self.id} batch={self.batch_id} loc={self.location_id} "
            f"size={self.size_class} qty={self.quantity} kg={self.weight_kg} type={self.entry_type}>"
        )


# =====================================================
# APPEND-ONLY ENFORCEMENT
# =====================================================
@event.listens_for(LedgerEntry, "before_update")
def _refuse_ledger_update(mapper, connection, target):
    logger.error("Blocked ledger entry update", extra={"entry_id": target.id})
    raise ConsistencyError(
        "Ledger entries are append-only and cannot be modified",
        {"entry_id": target.id, "operation": "UPDATE"},
    )


@event.listens_for(LedgerEntry, "before_delete")
def _refuse_ledger_delete(mapper, connection, target):
    logger.error("Blocked ledger entry delete", extra={"entry_id": target.id})
    raise ConsistencyError(
        "Ledger entries are append-only and cannot be deleted",
        {"entry_id": target.id, "operation": "DELETE"},
    )
