"""Device registry - token registration, liveness and per-user lookups."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError

from ..database import Database, upsert_statement
from ..errors import NotFoundError, StoreError, ValidationError
from ..models import Device

logger = logging.getLogger(__name__)

PLATFORMS = ("android", "ios", "web")
DEVICE_STATUSES = ("active", "inactive")

# Columns overwritten when a token registers again
UPSERT_COLUMNS = (
    "uid",
    "uuid",
    "platform",
    "user_id",
    "device_name",
    "app_version",
    "status",
    "last_seen",
)


def _short(token: str) -> str:
    return f"{token[:16]}..."


class DeviceRegistry:
    """Owns the ``devices`` table."""

    def __init__(self, database: Database):
        self._database = database

    async def register_device(
        self,
        device_token: str,
        uuid: str,
        platform: str,
        user_id: str,
        uid: Optional[str] = None,
        device_name: Optional[str] = None,
        app_version: Optional[str] = None,
        status: str = "active",
    ) -> dict:
        """Register a device, overwriting any existing row with the same token.

        Re-registration is last-writer-wins: every mutable field is replaced
        and ``last_seen`` is reset to now. ``created_at`` is kept.

        Returns:
            Dict with ``success``, ``device_id`` and ``device_token``
        """
        if not device_token:
            raise ValidationError("device_token", "Device token is required")
        if not uuid:
            raise ValidationError("uuid", "UUID is required")
        if platform not in PLATFORMS:
            raise ValidationError("platform", "Invalid platform")
        if not user_id:
            raise ValidationError("user_id", "User ID is required")
        if status not in DEVICE_STATUSES:
            raise ValidationError("status", "Invalid status")

        now = datetime.utcnow()
        stmt = upsert_statement(
            self._database.dialect_name,
            Device,
            values={
                "device_token": device_token,
                "uid": uid,
                "uuid": uuid,
                "platform": platform,
                "user_id": user_id,
                "device_name": device_name,
                "app_version": app_version,
                "status": status,
                "last_seen": now,
                "created_at": now,
            },
            conflict_column="device_token",
            update_columns=UPSERT_COLUMNS,
        )

        try:
            async with self._database.session() as session:
                result = await session.execute(stmt)
                device_id = result.scalar_one()
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error registering device: {e}")
            raise StoreError(str(e)) from e

        logger.info(f"Device registered successfully: {_short(device_token)}")
        return {
            "success": True,
            "device_id": device_id,
            "device_token": device_token,
        }

    async def update_device_last_seen(self, device_token: str) -> bool:
        """Refresh ``last_seen``. Unknown tokens are a silent no-op.

        Returns:
            True if a device row was touched
        """
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    update(Device)
                    .where(Device.device_token == device_token)
                    .values(last_seen=datetime.utcnow())
                )
                touched = result.rowcount
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error updating device last seen: {e}")
            raise StoreError(str(e)) from e

        return touched > 0

    async def get_user_devices(self, user_id: str) -> List[Device]:
        """Active devices of a user, most recently seen first."""
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(Device)
                    .where(Device.user_id == user_id, Device.status == "active")
                    .order_by(Device.last_seen.desc())
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error fetching user devices: {e}")
            raise StoreError(str(e)) from e

    async def deactivate_device(self, device_token: str) -> None:
        """Mark a device inactive. The row is kept."""
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    update(Device)
                    .where(Device.device_token == device_token)
                    .values(status="inactive")
                )
                updated = result.rowcount
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error deactivating device: {e}")
            raise StoreError(str(e)) from e

        if updated == 0:
            raise NotFoundError("Device not found")

        logger.info(f"Device deactivated: {_short(device_token)}")

    async def count_active_devices(self) -> int:
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(func.count(Device.id)).where(Device.status == "active")
                )
                return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting active devices: {e}")
            raise StoreError(str(e)) from e
