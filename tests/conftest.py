"""Shared fixtures: a fresh SQLite database per test and the services on top of it."""
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update

from app.config import Settings
from app.database import Database
from app.main import create_app
from app.models import Notification
from app.services import DeviceRegistry, HistoryRecorder, NotificationLifecycle


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'notifications.db'}")
    await db.init()
    yield db
    await db.close()


@pytest.fixture
def history(database):
    return HistoryRecorder(database)


@pytest.fixture
def registry(database):
    return DeviceRegistry(database)


@pytest.fixture
def lifecycle(database, history):
    return NotificationLifecycle(database, history)


@pytest.fixture
async def async_client(database):
    app = create_app(database, config=Settings(vapid_private_key=None, vapid_email=None))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def age_notification(database: Database, notification_id: int, days: int):
    """Move a notification's created_at ``days`` into the past."""
    async with database.session() as session:
        await session.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(created_at=datetime.utcnow() - timedelta(days=days))
        )
        await session.commit()


async def set_status(database: Database, notification_id: int, status: str):
    async with database.session() as session:
        await session.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(status=status)
        )
        await session.commit()
