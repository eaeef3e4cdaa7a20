"""Pydantic schemas for API request/response models."""
from .device import (
    DeviceRegister,
    DeviceRegistration,
    DeviceResponse,
)
from .notification import (
    NotificationCreate,
    NotificationCreated,
    MarkReadRequest,
    CleanupRequest,
    CleanupResult,
    PendingNotification,
    NotificationHistoryItem,
    NotificationStats,
)
from .web_push import (
    SubscriptionKeys,
    SubscriptionCreate,
    PushPayload,
    WebPushSendRequest,
    WebPushHistoryItem,
)

__all__ = [
    "DeviceRegister",
    "DeviceRegistration",
    "DeviceResponse",
    "NotificationCreate",
    "NotificationCreated",
    "MarkReadRequest",
    "CleanupRequest",
    "CleanupResult",
    "PendingNotification",
    "NotificationHistoryItem",
    "NotificationStats",
    "SubscriptionKeys",
    "SubscriptionCreate",
    "PushPayload",
    "WebPushSendRequest",
    "WebPushHistoryItem",
]
