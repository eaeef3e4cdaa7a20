"""Best-effort audit trail for notification lifecycle events.

Writes happen in their own session after the primary write has been
committed. A failure here is logged and never reaches the caller of the
lifecycle operation, so a transition can exist without a history row.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from ..database import Database
from ..models import NotificationHistory

logger = logging.getLogger(__name__)

ACTION_CREATED = "created"
ACTION_SENT = "sent"
ACTION_DELIVERED = "delivered"
ACTION_READ = "read"
ACTION_FAILED = "failed"


class HistoryRecorder:
    """Appends rows to ``notification_history``."""

    def __init__(self, database: Database):
        self._database = database

    async def record(
        self,
        notification_id: int,
        device_token: Optional[str],
        action: str,
        details: Optional[str] = None,
    ) -> bool:
        """Append one history row.

        Returns:
            True if the row was written, False if recording failed
        """
        try:
            async with self._database.session() as session:
                session.add(NotificationHistory(
                    notification_id=notification_id,
                    device_token=device_token,
                    action=action,
                    details=details,
                    timestamp=datetime.utcnow(),
                ))
                await session.commit()
            return True
        except Exception as e:
            logger.error(f"Error logging notification history for {notification_id}: {e}")
            return False

    async def get_events(self, notification_id: int) -> List[NotificationHistory]:
        """History rows for one notification, oldest first."""
        async with self._database.session() as session:
            result = await session.execute(
                select(NotificationHistory)
                .where(NotificationHistory.notification_id == notification_id)
                .order_by(NotificationHistory.timestamp, NotificationHistory.id)
            )
            return list(result.scalars().all())
