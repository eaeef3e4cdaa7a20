"""Web-push subscription models for the legacy browser delivery path."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Subscription(Base):
    """Browser push subscription. Endpoints are not unique."""

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    endpoint = Column(String, nullable=False)
    auth = Column(String, nullable=False)
    p256dh = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    deliveries = relationship("WebPushNotification", back_populates="subscription")


class WebPushNotification(Base):
    """Record of a web-push delivery attempt."""

    __tablename__ = "web_push_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id"), nullable=True)
    title = Column(String, nullable=False)
    body = Column(String, nullable=False)
    status = Column(String, nullable=False)  # SUCCESS, FAILED
    error = Column(String, nullable=True)
    sent_at = Column(DateTime, default=datetime.utcnow)

    subscription = relationship("Subscription", back_populates="deliveries")
