"""Legacy browser web-push bridge.

Subscriptions are stored as given (no endpoint deduplication) and delivery
is delegated to the push gateway through ``pywebpush``. Each attempt is
recorded in ``web_push_notifications`` as SUCCESS or FAILED. Failed
deliveries are not retried.
"""
import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from pywebpush import WebPushException, webpush
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..config import Settings
from ..database import Database
from ..errors import ExternalDeliveryError, NotFoundError, StoreError, ValidationError
from ..models import Subscription, WebPushNotification
from ..schemas.web_push import WebPushHistoryItem

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "SUCCESS"
STATUS_FAILED = "FAILED"


@dataclass(frozen=True)
class VapidConfig:
    """VAPID credentials used to sign push requests."""
    private_key: str
    email: str
    public_key: str = ""

    @property
    def claims(self) -> dict:
        return {"sub": f"mailto:{self.email}"}

    @classmethod
    def from_settings(cls, config: Settings) -> Optional["VapidConfig"]:
        if not (config.vapid_private_key and config.vapid_email):
            return None
        return cls(
            private_key=config.vapid_private_key,
            email=config.vapid_email,
            public_key=config.vapid_public_key or "",
        )


class WebPushGateway:
    """Blocking sender around ``pywebpush.webpush``."""

    def __init__(self, vapid_config: Optional[VapidConfig], timeout_seconds: float = 10.0):
        self._vapid_config = vapid_config
        self._timeout_seconds = timeout_seconds
        if vapid_config is None:
            logger.warning("VAPID keys not configured - web push delivery will fail")

    def send(self, endpoint: str, auth: str, p256dh: str, payload: str) -> None:
        """Deliver a serialized payload to one subscription.

        Raises:
            ExternalDeliveryError: gateway rejected the push or is unreachable
        """
        if self._vapid_config is None:
            raise ExternalDeliveryError("Web push is not configured")

        subscription_info = {"endpoint": endpoint, "keys": {"auth": auth, "p256dh": p256dh}}
        try:
            webpush(
                subscription_info=subscription_info,
                data=payload,
                vapid_private_key=self._vapid_config.private_key,
                vapid_claims=dict(self._vapid_config.claims),
                timeout=self._timeout_seconds,
            )
        except WebPushException as e:
            raise ExternalDeliveryError(str(e)) from e
        except ValueError as e:
            # Malformed VAPID key or subscription keys
            raise ExternalDeliveryError(f"Invalid push credentials: {e}") from e
        except OSError as e:
            # requests' connection errors derive from OSError
            raise ExternalDeliveryError(f"Push gateway unreachable: {e}") from e


class WebPushBridge:
    """Owns the ``subscriptions`` and ``web_push_notifications`` tables."""

    def __init__(self, database: Database, gateway: WebPushGateway):
        self._database = database
        self._gateway = gateway

    async def save_subscription(self, endpoint: str, auth: str, p256dh: str) -> int:
        """Insert a subscription row and return its id."""
        for field, value in (("endpoint", endpoint), ("keys.auth", auth), ("keys.p256dh", p256dh)):
            if not value:
                raise ValidationError(field, f"{field} is required")

        subscription = Subscription(endpoint=endpoint, auth=auth, p256dh=p256dh)
        try:
            async with self._database.session() as session:
                session.add(subscription)
                await session.commit()
                subscription_id = subscription.id
        except SQLAlchemyError as e:
            logger.error(f"Error saving subscription: {e}")
            raise StoreError(str(e)) from e

        logger.info(f"Saved subscription with ID: {subscription_id}")
        return subscription_id

    async def send_notification(self, subscription_id: int, payload: dict) -> None:
        """Push ``payload`` to a stored subscription and record the outcome.

        Raises:
            NotFoundError: no such subscription
            ExternalDeliveryError: the gateway failed; a FAILED row is recorded
        """
        try:
            async with self._database.session() as session:
                subscription = await session.get(Subscription, subscription_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching subscription: {e}")
            raise StoreError(str(e)) from e

        if subscription is None:
            logger.error(f"Subscription not found: {subscription_id}")
            raise NotFoundError("Subscription not found")

        title = payload.get("title", "")
        body = payload.get("body", "")

        try:
            await asyncio.to_thread(
                self._gateway.send,
                subscription.endpoint,
                subscription.auth,
                subscription.p256dh,
                json.dumps(payload),
            )
        except ExternalDeliveryError as e:
            await self._record_delivery(subscription_id, title, body, STATUS_FAILED, str(e))
            logger.error(f"Error sending notification to subscription {subscription_id}: {e}")
            raise

        await self._record_delivery(subscription_id, title, body, STATUS_SUCCESS)
        logger.info(f"Notification sent successfully to subscription {subscription_id}")

    async def _record_delivery(
        self,
        subscription_id: int,
        title: str,
        body: str,
        status: str,
        error: Optional[str] = None,
    ):
        try:
            async with self._database.session() as session:
                session.add(WebPushNotification(
                    subscription_id=subscription_id,
                    title=title,
                    body=body,
                    status=status,
                    error=error,
                    sent_at=datetime.utcnow(),
                ))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error recording web push delivery: {e}")

    async def get_notification_history(self, limit: int = 100) -> List[WebPushHistoryItem]:
        """Delivery attempts joined to their subscription, newest first."""
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(WebPushNotification, Subscription.endpoint)
                    .join(Subscription, WebPushNotification.subscription_id == Subscription.id)
                    .order_by(WebPushNotification.sent_at.desc(), WebPushNotification.id.desc())
                    .limit(limit)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching web push history: {e}")
            raise StoreError(str(e)) from e

        return [
            WebPushHistoryItem(
                id=n.id,
                subscription_id=n.subscription_id,
                title=n.title,
                body=n.body,
                status=n.status,
                error=n.error,
                sent_at=n.sent_at,
                endpoint=endpoint,
            )
            for n, endpoint in rows
        ]
