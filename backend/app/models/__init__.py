"""Database models."""
from .device import Device
from .notification import Notification
from .notification_history import NotificationHistory
from .subscription import Subscription, WebPushNotification

__all__ = ["Device", "Notification", "NotificationHistory", "Subscription", "WebPushNotification"]
