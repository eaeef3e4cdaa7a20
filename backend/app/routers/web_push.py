"""Legacy browser web-push endpoints, kept for compatibility."""
import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_web_push_bridge
from ..errors import ApiError, RegistryError
from ..schemas.web_push import SubscriptionCreate, WebPushSendRequest
from ..services.web_push import WebPushBridge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/web-push", tags=["web-push"])


@router.post("/subscriptions", status_code=201)
async def save_subscription(
    request: SubscriptionCreate,
    bridge: WebPushBridge = Depends(get_web_push_bridge),
):
    """Store a browser push subscription."""
    try:
        subscription_id = await bridge.save_subscription(
            request.endpoint, request.keys.auth, request.keys.p256dh
        )
    except RegistryError as e:
        logger.error(f"Error in save subscription route: {e}")
        raise ApiError("Error saving subscription", e)

    return {
        "status": "success",
        "message": "Subscription saved successfully",
        "subscriptionId": subscription_id,
    }


@router.post("/notifications")
async def send_web_push(
    request: WebPushSendRequest,
    bridge: WebPushBridge = Depends(get_web_push_bridge),
):
    """Save the given subscription and push the payload to it."""
    subscription = request.subscription[0]
    payload = request.payload[0]
    try:
        subscription_id = await bridge.save_subscription(
            subscription.endpoint, subscription.keys.auth, subscription.keys.p256dh
        )
        await bridge.send_notification(subscription_id, payload.model_dump())
    except RegistryError as e:
        logger.error(f"Error in send web push route: {e}")
        raise ApiError("Error sending notification", e)

    return {
        "status": "success",
        "message": "Notification sent successfully",
    }


@router.get("/notifications")
async def get_web_push_history(
    limit: int = 100,
    bridge: WebPushBridge = Depends(get_web_push_bridge),
):
    """Delivery attempts, newest first."""
    try:
        history = await bridge.get_notification_history(limit or 100)
    except RegistryError as e:
        logger.error(f"Error in get web push history route: {e}")
        raise ApiError("Error fetching notification history", e)

    return {
        "status": "success",
        "data": history,
    }
