"""Notification model - messages waiting to be polled by clients."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Index

from ..database import Base

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_READ = "read"
STATUS_FAILED = "failed"


class Notification(Base):
    """A notification addressed to a user, a device token, or both."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_status", "status"),
        Index("idx_notifications_user", "target_user_id"),
        Index("idx_notifications_created", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Not a foreign key: notifications may target tokens that never registered
    device_token = Column(String, nullable=True)
    target_user_id = Column(String, nullable=True)
    sender_id = Column(String, nullable=True)
    title = Column(String, nullable=False)
    body = Column(String, nullable=False)
    data = Column(String, nullable=True)  # JSON payload
    priority = Column(String, default="normal")  # low, normal, high
    notification_type = Column(String, default="custom")
    status = Column(String, default=STATUS_PENDING)  # pending, sent, read, failed
    error = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    sent_at = Column(DateTime, nullable=True)
    read_at = Column(DateTime, nullable=True)
