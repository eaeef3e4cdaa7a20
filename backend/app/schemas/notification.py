"""Notification schemas for API request/response models."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class NotificationCreate(BaseModel):
    """Schema for enqueueing a notification."""
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    target_user_id: str = Field(..., min_length=1)
    sender_id: str = Field(..., min_length=1)
    data: Any = Field(default_factory=dict)
    priority: str = Field(default="normal", pattern="^(low|normal|high)$")
    notification_type: str = "custom"
    target_token: Optional[str] = None


class NotificationCreated(BaseModel):
    """Result of enqueueing a notification."""
    success: bool = True
    notification_id: int
    message: str = "Notification created successfully"


class MarkReadRequest(BaseModel):
    """Schema for acknowledging a notification."""
    notification_id: int
    user_id: str = Field(..., min_length=1)


class CleanupRequest(BaseModel):
    """Schema for sweeping old read/failed notifications."""
    days_old: Optional[int] = Field(None, ge=1, le=365)


class PendingNotification(BaseModel):
    """A pending notification as served to a polling client."""
    id: int
    title: str
    body: str
    data: Any = None
    notification_type: Optional[str] = None
    priority: Optional[str] = None
    created_at: Optional[datetime] = None
    sender_id: Optional[str] = None


class NotificationHistoryItem(PendingNotification):
    """A notification of any status, joined to its target device."""
    status: str
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    device_name: Optional[str] = None
    platform: Optional[str] = None


class NotificationStats(BaseModel):
    """Notification counts over the trailing stats window."""
    total: int = 0
    pending: int = 0
    read: int = 0
    failed: int = 0


class CleanupResult(BaseModel):
    deleted: int
