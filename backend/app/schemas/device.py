"""Device schemas for API request/response models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_DEVICE_NAME = "Unknown Device"
DEFAULT_APP_VERSION = "1.0.0"


class DeviceRegister(BaseModel):
    """Schema for registering (or re-registering) a device token."""
    device_token: str = Field(..., min_length=1)
    uid: Optional[str] = None
    uuid: str = Field(..., min_length=1)
    platform: str = Field(..., pattern="^(android|ios|web)$")
    user_id: str = Field(..., min_length=1)
    device_name: Optional[str] = DEFAULT_DEVICE_NAME
    app_version: Optional[str] = DEFAULT_APP_VERSION
    status: Optional[str] = Field(default="active", pattern="^(active|inactive)$")

    @field_validator("device_name", "app_version", "status", mode="before")
    @classmethod
    def blank_uses_default(cls, value, info):
        """Null or empty values fall back to the field default."""
        if value is None or value == "":
            return cls.model_fields[info.field_name].default
        return value


class DeviceRegistration(BaseModel):
    """Result of a device registration."""
    success: bool = True
    device_id: int
    device_token: str


class DeviceResponse(BaseModel):
    """Schema for a device in API responses."""
    device_token: str
    device_name: Optional[str] = None
    platform: str
    app_version: Optional[str] = None
    status: str
    last_seen: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
