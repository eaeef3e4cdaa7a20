"""Device model - registered mobile/web installations addressable by token."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Index

from ..database import Base


class Device(Base):
    """A client installation registered for notification polling."""

    __tablename__ = "devices"
    __table_args__ = (
        Index("idx_devices_user_id", "user_id"),
        Index("idx_devices_token", "device_token"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_token = Column(String, unique=True, nullable=False)
    uid = Column(String, nullable=True)
    uuid = Column(String, nullable=False)  # client-generated install id
    platform = Column(String, nullable=False)  # android, ios, web
    user_id = Column(String, nullable=True)
    device_name = Column(String, nullable=True)
    app_version = Column(String, nullable=True)
    status = Column(String, default="active")  # active, inactive
    last_seen = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
