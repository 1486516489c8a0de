from sqlalchemy import Column, Integer, String, Index
from fishstock.core.db import Base
from fishstock.models.base.mixins import TimestampMixin


class UserActivity(Base, TimestampMixin):
    """Who did what to the stock. Rows are only ever inserted."""

    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True)
    actor_id = Column(String(150), nullable=False, index=True)
    actor_role = Column(String(50), nullable=True)
    code = Column(String(50), nullable=False, index=True)
    message = Column(String, nullable=False)

    __table_args__ = (Index("ix_user_activity_actor_created", "actor_id", "created_at"),)

    def __repr__(self):
        return f"<UserActivity id={self.id} code={self.code} actor={self.actor_id}>"
