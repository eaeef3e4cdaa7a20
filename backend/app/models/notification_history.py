"""NotificationHistory model - append-only audit trail of lifecycle events."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Index

from ..database import Base


class NotificationHistory(Base):
    """One row per lifecycle event (created, sent, delivered, read, failed)."""

    __tablename__ = "notification_history"
    __table_args__ = (
        Index("idx_history_notification", "notification_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Weak reference: history outlives notifications removed by cleanup
    notification_id = Column(Integer, nullable=True)
    device_token = Column(String, nullable=True)
    action = Column(String, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
    details = Column(String, nullable=True)
