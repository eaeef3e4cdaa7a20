"""Notification lifecycle - create, poll, acknowledge, report and sweep.

Mobile delivery is pull based: a notification is inserted as ``pending``
and stays there until the client explicitly acknowledges it. Polling does
not change state.

Status flow::

    pending -> read
    pending -> failed

Every transition is followed by a best-effort history event.
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional

from sqlalchemy import select, update, delete, func, case, or_
from sqlalchemy.exc import SQLAlchemyError

from ..database import Database
from ..errors import (
    NotFoundOrUnauthorizedError,
    SerializationError,
    StoreError,
    ValidationError,
)
from ..models import Device, Notification
from ..models.notification import STATUS_PENDING, STATUS_READ, STATUS_FAILED
from ..schemas.notification import (
    NotificationHistoryItem,
    NotificationStats,
    PendingNotification,
)
from .history_recorder import HistoryRecorder, ACTION_CREATED, ACTION_READ

logger = logging.getLogger(__name__)

# Maximum notifications returned to a polling client
PENDING_LIMIT = 50

# Trailing window for notification statistics
STATS_WINDOW_DAYS = 7

DEFAULT_CLEANUP_DAYS = 30

PRIORITIES = ("low", "normal", "high")

# Only these statuses are eligible for cleanup; pending is never swept
SWEEPABLE_STATUSES = (STATUS_READ, STATUS_FAILED)


def serialize_data(data: Any) -> str:
    """Serialize a notification payload to its stored JSON text."""
    try:
        return json.dumps({} if data is None else data)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Notification data is not JSON serializable: {e}") from e


def deserialize_data(raw: Optional[str]) -> Any:
    """Decode a stored payload. Missing payloads decode to an empty dict."""
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError as e:
        raise SerializationError(f"Malformed notification data: {e}") from e


class NotificationLifecycle:
    """Owns the ``notifications`` table."""

    def __init__(self, database: Database, history: HistoryRecorder):
        self._database = database
        self._history = history

    async def create_notification(
        self,
        title: str,
        body: str,
        target_user_id: str,
        sender_id: str,
        data: Any = None,
        priority: str = "normal",
        notification_type: str = "custom",
        target_token: Optional[str] = None,
    ) -> dict:
        """Enqueue a pending notification and log a ``created`` event.

        The insert is strict; the history write afterwards is best-effort.

        Returns:
            Dict with ``success``, ``notification_id`` and ``message``
        """
        for field, value in (
            ("title", title),
            ("body", body),
            ("target_user_id", target_user_id),
            ("sender_id", sender_id),
        ):
            if not value:
                raise ValidationError(field, f"{field} is required")
        if priority not in PRIORITIES:
            raise ValidationError("priority", "Invalid priority")

        notification = Notification(
            device_token=target_token,
            target_user_id=target_user_id,
            sender_id=sender_id,
            title=title,
            body=body,
            data=serialize_data(data),
            priority=priority,
            notification_type=notification_type or "custom",
            status=STATUS_PENDING,
            created_at=datetime.utcnow(),
        )

        try:
            async with self._database.session() as session:
                session.add(notification)
                await session.commit()
                notification_id = notification.id
        except SQLAlchemyError as e:
            logger.error(f"Error creating notification: {e}")
            raise StoreError(str(e)) from e

        await self._history.record(
            notification_id, target_token, ACTION_CREATED, "Notification created successfully"
        )

        logger.info(f"Notification created with ID: {notification_id}")
        return {
            "success": True,
            "notification_id": notification_id,
            "message": "Notification created successfully",
        }

    async def get_pending_notifications(
        self,
        user_id: Optional[str],
        device_token: Optional[str],
    ) -> List[PendingNotification]:
        """Pending notifications addressed to the user or the device, newest first."""
        targets = []
        if user_id:
            targets.append(Notification.target_user_id == user_id)
        if device_token:
            targets.append(Notification.device_token == device_token)
        if not targets:
            raise ValidationError("user_id", "User ID or device token is required")

        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(Notification)
                    .where(or_(*targets), Notification.status == STATUS_PENDING)
                    .order_by(Notification.created_at.desc(), Notification.id.desc())
                    .limit(PENDING_LIMIT)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching pending notifications: {e}")
            raise StoreError(str(e)) from e

        return [
            PendingNotification(
                id=n.id,
                title=n.title,
                body=n.body,
                data=deserialize_data(n.data),
                notification_type=n.notification_type,
                priority=n.priority,
                created_at=n.created_at,
                sender_id=n.sender_id,
            )
            for n in rows
        ]

    async def mark_notification_as_read(self, notification_id: int, user_id: str) -> dict:
        """Acknowledge a notification on behalf of its target user.

        Already-read notifications match again and get a fresh ``read_at``.

        Raises:
            NotFoundOrUnauthorizedError: no notification with this id is
                addressed to ``user_id``
        """
        if not user_id:
            raise ValidationError("user_id", "User ID is required")

        try:
            async with self._database.session() as session:
                result = await session.execute(
                    update(Notification)
                    .where(
                        Notification.id == notification_id,
                        Notification.target_user_id == user_id,
                    )
                    .values(status=STATUS_READ, read_at=datetime.utcnow())
                )
                updated = result.rowcount
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error marking notification as read: {e}")
            raise StoreError(str(e)) from e

        if updated == 0:
            raise NotFoundOrUnauthorizedError()

        await self._history.record(notification_id, None, ACTION_READ, "Notification marked as read")

        logger.info(f"Notification {notification_id} marked as read")
        return {"success": True, "message": "Notification marked as read"}

    async def get_notification_history(
        self,
        user_id: str,
        limit: int = 50,
    ) -> List[NotificationHistoryItem]:
        """All notifications addressed to a user, with their device if known.

        Notifications addressed only by device token are not included.
        """
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(Notification, Device.device_name, Device.platform)
                    .outerjoin(Device, Notification.device_token == Device.device_token)
                    .where(Notification.target_user_id == user_id)
                    .order_by(Notification.created_at.desc(), Notification.id.desc())
                    .limit(limit)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching notification history: {e}")
            raise StoreError(str(e)) from e

        return [
            NotificationHistoryItem(
                id=n.id,
                title=n.title,
                body=n.body,
                data=deserialize_data(n.data),
                notification_type=n.notification_type,
                priority=n.priority,
                status=n.status,
                created_at=n.created_at,
                sent_at=n.sent_at,
                read_at=n.read_at,
                sender_id=n.sender_id,
                device_name=device_name,
                platform=platform,
            )
            for n, device_name, platform in rows
        ]

    async def get_notification_stats(self, user_id: str) -> NotificationStats:
        """Counts by status for the user over the trailing stats window."""
        cutoff = datetime.utcnow() - timedelta(days=STATS_WINDOW_DAYS)

        def _count_status(status: str):
            return func.sum(case((Notification.status == status, 1), else_=0))

        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(
                        func.count(Notification.id).label("total"),
                        _count_status(STATUS_PENDING).label("pending"),
                        _count_status(STATUS_READ).label("read"),
                        _count_status(STATUS_FAILED).label("failed"),
                    ).where(
                        Notification.target_user_id == user_id,
                        Notification.created_at >= cutoff,
                    )
                )
                row = result.one()._mapping
        except SQLAlchemyError as e:
            logger.error(f"Error fetching notification stats: {e}")
            raise StoreError(str(e)) from e

        return NotificationStats(
            total=row["total"] or 0,
            pending=row["pending"] or 0,
            read=row["read"] or 0,
            failed=row["failed"] or 0,
        )

    async def cleanup_old_notifications(self, days_old: int = DEFAULT_CLEANUP_DAYS) -> dict:
        """Delete read/failed notifications older than ``days_old`` days.

        Returns:
            Dict with the number of ``deleted`` rows
        """
        if isinstance(days_old, bool) or not isinstance(days_old, int) or days_old < 0:
            raise ValidationError("days_old", "Days must be a non-negative integer")

        cutoff = datetime.utcnow() - timedelta(days=days_old)

        try:
            async with self._database.session() as session:
                result = await session.execute(
                    delete(Notification).where(
                        Notification.created_at < cutoff,
                        Notification.status.in_(SWEEPABLE_STATUSES),
                    )
                )
                deleted = result.rowcount
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error cleaning up old notifications: {e}")
            raise StoreError(str(e)) from e

        logger.info(f"Cleaned up {deleted} old notifications")
        return {"deleted": deleted}
