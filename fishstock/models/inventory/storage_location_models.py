from sqlalchemy import Column, Integer, String, Enum, Numeric, CheckConstraint, Index
from sqlalchemy.orm import relationship
from fishstock.core.db import Base
from fishstock.models.base.mixins import TimestampMixin, AuditMixin
from fishstock.models.enums.storage_location import StorageLocationType, StorageLocationStatus


class StorageLocation(Base, TimestampMixin, AuditMixin):
    """Physical place that holds stock. Usage is derived from the ledger, never stored."""

    __tablename__ = "storage_locations"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    location_type = Column(Enum(StorageLocationType), nullable=False)
    capacity_kg = Column(Numeric(12, 1), nullable=False)
    status = Column(Enum(StorageLocationStatus), nullable=False, default=StorageLocationStatus.active)
    description = Column(String(255), nullable=True)
    temperature_celsius = Column(Numeric(5, 1), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    ledger_entries = relationship("LedgerEntry", back_populates="location", lazy="noload")

    __table_args__ = (
        CheckConstraint("capacity_kg > 0", name="ck_storage_location_capacity_positive"),
        Index("ix_storage_location_status", "status"),
    )

    def __repr__(self):
        return f"<StorageLocation id={self.id} name={self.name} capacity={self.capacity_kg} status={self.status}>"
