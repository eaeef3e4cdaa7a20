"""FastAPI dependencies resolving the services built in ``create_app``."""
from fastapi import Request

from .services.device_registry import DeviceRegistry
from .services.notification_lifecycle import NotificationLifecycle
from .services.web_push import WebPushBridge


def get_device_registry(request: Request) -> DeviceRegistry:
    return request.app.state.device_registry


def get_notification_lifecycle(request: Request) -> NotificationLifecycle:
    return request.app.state.notification_lifecycle


def get_web_push_bridge(request: Request) -> WebPushBridge:
    return request.app.state.web_push_bridge
