"""Notification API endpoints: send, poll, acknowledge, report and sweep."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..dependencies import get_device_registry, get_notification_lifecycle
from ..errors import ApiError, RegistryError
from ..schemas.notification import (
    CleanupRequest,
    CleanupResult,
    MarkReadRequest,
    NotificationCreate,
    NotificationCreated,
)
from ..services.device_registry import DeviceRegistry
from ..services.notification_lifecycle import DEFAULT_CLEANUP_DAYS, NotificationLifecycle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notificaciones", tags=["notifications"])

DEFAULT_HISTORY_LIMIT = 50


@router.get("/pendientes")
async def get_pending_notifications(
    user_id: str = Query(..., min_length=1),
    device_token: str = Query(..., min_length=1),
    registry: DeviceRegistry = Depends(get_device_registry),
    lifecycle: NotificationLifecycle = Depends(get_notification_lifecycle),
):
    """Poll for pending notifications. Also refreshes the device's last_seen."""
    try:
        await registry.update_device_last_seen(device_token)
        notifications = await lifecycle.get_pending_notifications(user_id, device_token)
    except RegistryError as e:
        logger.error(f"Error in get pending notifications route: {e}")
        raise ApiError("Error fetching pending notifications", e)

    return {
        "status": "success",
        "message": "Pending notifications retrieved",
        "data": notifications,
        "count": len(notifications),
    }


@router.post("/enviar")
async def send_notification(
    request: NotificationCreate,
    lifecycle: NotificationLifecycle = Depends(get_notification_lifecycle),
):
    """Enqueue a notification for the target user to pick up on next poll."""
    try:
        result = await lifecycle.create_notification(**request.model_dump())
    except RegistryError as e:
        logger.error(f"Error in send notification route: {e}")
        raise ApiError("Error sending notification", e)

    return {
        "status": "success",
        "message": "Notification sent successfully",
        "data": NotificationCreated(**result),
    }


@router.get("/historial")
async def get_notification_history(
    user_id: str = Query(..., min_length=1),
    limit: int = DEFAULT_HISTORY_LIMIT,
    lifecycle: NotificationLifecycle = Depends(get_notification_lifecycle),
):
    """Notifications of any status addressed to the user, newest first."""
    try:
        history = await lifecycle.get_notification_history(user_id, limit or DEFAULT_HISTORY_LIMIT)
    except RegistryError as e:
        logger.error(f"Error in get notification history route: {e}")
        raise ApiError("Error fetching notification history", e)

    return {
        "status": "success",
        "message": "Notification history retrieved",
        "data": history,
        "count": len(history),
    }


@router.post("/marcar-leida")
async def mark_notification_as_read(
    request: MarkReadRequest,
    lifecycle: NotificationLifecycle = Depends(get_notification_lifecycle),
):
    """Acknowledge a notification. Only its target user may do so."""
    try:
        result = await lifecycle.mark_notification_as_read(request.notification_id, request.user_id)
    except RegistryError as e:
        logger.error(f"Error in mark notification as read route: {e}")
        raise ApiError("Error marking notification as read", e)

    return {
        "status": "success",
        "message": "Notification marked as read",
        "data": result,
    }


@router.get("/estadisticas")
async def get_notification_stats(
    user_id: str = Query(..., min_length=1),
    lifecycle: NotificationLifecycle = Depends(get_notification_lifecycle),
):
    """Counts by status over the last 7 days."""
    try:
        stats = await lifecycle.get_notification_stats(user_id)
    except RegistryError as e:
        logger.error(f"Error in get notification stats route: {e}")
        raise ApiError("Error fetching notification statistics", e)

    return {
        "status": "success",
        "message": "Notification statistics retrieved",
        "data": stats,
    }


@router.post("/limpiar")
async def cleanup_notifications(
    request: Optional[CleanupRequest] = None,
    lifecycle: NotificationLifecycle = Depends(get_notification_lifecycle),
):
    """Delete read/failed notifications older than ``days_old`` (default 30)."""
    days_old = request.days_old if request and request.days_old else DEFAULT_CLEANUP_DAYS
    try:
        result = await lifecycle.cleanup_old_notifications(days_old)
    except RegistryError as e:
        logger.error(f"Error in cleanup notifications route: {e}")
        raise ApiError("Error cleaning up notifications", e)

    return {
        "status": "success",
        "message": "Old notifications cleaned up",
        "data": CleanupResult(**result),
    }


@router.get("/health")
async def notifications_health(
    registry: DeviceRegistry = Depends(get_device_registry),
):
    """Health check that exercises the database."""
    try:
        active_devices = await registry.count_active_devices()
    except RegistryError as e:
        logger.error(f"Error in health check: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "status": "unhealthy",
                "message": "Mobile notification service has issues",
                "error": str(e),
            },
        )

    return {
        "status": "healthy",
        "message": "Mobile notification service is running",
        "data": {
            "active_devices": active_devices,
            "timestamp": datetime.utcnow().isoformat(),
        },
    }
