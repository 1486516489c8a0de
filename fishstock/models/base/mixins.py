from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now()
    )


class AuditMixin:
    # user ids come from the external auth service, stored as snapshots
    created_by = Column(String(150), nullable=True, index=True)
    updated_by = Column(String(150), nullable=True)
