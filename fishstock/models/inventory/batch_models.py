from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from fishstock.core.db import Base
from fishstock.models.base.mixins import TimestampMixin, AuditMixin


class Batch(Base, TimestampMixin, AuditMixin):
    """Provenance unit: one processing record becomes one batch. Immutable."""

    __tablename__ = "batches"

    id = Column(Integer, primary_key=True)
    batch_number = Column(String(50), nullable=False, unique=True, index=True)
    source_processing_record_id = Column(String(64), nullable=False, unique=True, index=True)

    ledger_entries = relationship("LedgerEntry", back_populates="batch", lazy="noload")

    def __repr__(self):
        return f"<Batch id={self.id} number={self.batch_number} processing={self.source_processing_record_id}>"
