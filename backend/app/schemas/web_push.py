"""Schemas for the legacy browser web-push bridge."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class SubscriptionKeys(BaseModel):
    auth: str = Field(..., min_length=1)
    p256dh: str = Field(..., min_length=1)


class SubscriptionCreate(BaseModel):
    """Browser push subscription as produced by ``PushManager.subscribe``."""
    endpoint: str = Field(..., min_length=1, pattern=r"^https?://\S+$")
    keys: SubscriptionKeys


class PushPayload(BaseModel):
    """Payload forwarded to the browser. Extra keys are passed through."""
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)

    class Config:
        extra = "allow"


class WebPushSendRequest(BaseModel):
    """Save the first subscription, then deliver the first payload to it."""
    subscription: List[SubscriptionCreate] = Field(..., min_length=1)
    payload: List[PushPayload] = Field(..., min_length=1)


class WebPushHistoryItem(BaseModel):
    id: int
    subscription_id: Optional[int] = None
    title: str
    body: str
    status: str
    error: Optional[str] = None
    sent_at: Optional[datetime] = None
    endpoint: str
