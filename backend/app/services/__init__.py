"""Services for device registration, notification lifecycle and web push."""
from .history_recorder import HistoryRecorder
from .device_registry import DeviceRegistry
from .notification_lifecycle import NotificationLifecycle
from .web_push import WebPushBridge, WebPushGateway, VapidConfig

__all__ = [
    "HistoryRecorder",
    "DeviceRegistry",
    "NotificationLifecycle",
    "WebPushBridge",
    "WebPushGateway",
    "VapidConfig",
]
