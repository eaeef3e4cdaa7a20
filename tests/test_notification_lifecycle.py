"""Tests for the notification lifecycle: create, poll, acknowledge, report, sweep."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.errors import NotFoundOrUnauthorizedError, SerializationError, StoreError, ValidationError
from app.models import Notification
from app.services import NotificationLifecycle
from app.services.notification_lifecycle import PENDING_LIMIT, deserialize_data, serialize_data

from conftest import age_notification, set_status


async def _create(lifecycle, **overrides):
    data = {"title": "Hi", "body": "Test", "target_user_id": "alice", "sender_id": "bob"}
    data.update(overrides)
    result = await lifecycle.create_notification(**data)
    return result["notification_id"]


@pytest.mark.anyio
async def test_poll_then_acknowledge_scenario(registry, lifecycle):
    await registry.register_device(device_token="tok1", uuid="u1", platform="android", user_id="alice")
    notification_id = await _create(lifecycle)

    pending = await lifecycle.get_pending_notifications("alice", "tok1")
    assert len(pending) == 1
    assert pending[0].id == notification_id
    assert pending[0].title == "Hi"

    history = await lifecycle.get_notification_history("alice", 50)
    assert history[0].status == "pending"

    result = await lifecycle.mark_notification_as_read(notification_id, "alice")
    assert result["success"] is True

    assert await lifecycle.get_pending_notifications("alice", "tok1") == []


@pytest.mark.anyio
async def test_create_notification_defaults(lifecycle, database):
    notification_id = await _create(lifecycle)

    async with database.session() as session:
        notification = await session.get(Notification, notification_id)

    assert notification.status == "pending"
    assert notification.priority == "normal"
    assert notification.notification_type == "custom"
    assert notification.data == "{}"
    assert notification.device_token is None
    assert notification.read_at is None


@pytest.mark.anyio
async def test_create_notification_records_history(lifecycle, history):
    notification_id = await _create(lifecycle, target_token="tok1")

    events = await history.get_events(notification_id)
    assert [e.action for e in events] == ["created"]
    assert events[0].device_token == "tok1"


@pytest.mark.anyio
@pytest.mark.parametrize("field", ["title", "body", "target_user_id", "sender_id"])
async def test_create_notification_requires_fields(lifecycle, field):
    with pytest.raises(ValidationError) as exc_info:
        await _create(lifecycle, **{field: ""})
    assert exc_info.value.field == field


@pytest.mark.anyio
async def test_create_notification_rejects_unknown_priority(lifecycle):
    with pytest.raises(ValidationError):
        await _create(lifecycle, priority="urgent")


@pytest.mark.anyio
async def test_history_failure_does_not_fail_create(database):
    history = MagicMock()
    history.record = AsyncMock(return_value=False)
    lifecycle = NotificationLifecycle(database, history)

    notification_id = await _create(lifecycle)

    assert isinstance(notification_id, int)
    history.record.assert_awaited_once()


@pytest.mark.anyio
async def test_history_recorder_swallows_store_errors():
    from app.services import HistoryRecorder

    database = MagicMock()
    database.session.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))

    assert await HistoryRecorder(database).record(1, None, "created", "details") is False


@pytest.mark.anyio
async def test_data_round_trips(lifecycle):
    payload = {"screen": "chat", "ids": [1, 2, 3], "nested": {"flag": True, "none": None}}
    await _create(lifecycle, data=payload)

    pending = await lifecycle.get_pending_notifications("alice", None)
    history = await lifecycle.get_notification_history("alice", 10)

    assert pending[0].data == payload
    assert history[0].data == payload


@pytest.mark.anyio
async def test_pending_matches_user_or_device(lifecycle):
    by_user = await _create(lifecycle, title="user")
    by_token = await _create(lifecycle, title="token", target_user_id="carol", target_token="tok1")
    await _create(lifecycle, title="elsewhere", target_user_id="carol", target_token="tok2")

    pending = await lifecycle.get_pending_notifications("alice", "tok1")

    # Newest first
    assert [n.id for n in pending] == [by_token, by_user]


@pytest.mark.anyio
async def test_pending_excludes_other_statuses(lifecycle, database):
    read_id = await _create(lifecycle, title="read")
    failed_id = await _create(lifecycle, title="failed")
    await _create(lifecycle, title="pending")
    await lifecycle.mark_notification_as_read(read_id, "alice")
    await set_status(database, failed_id, "failed")

    pending = await lifecycle.get_pending_notifications("alice", "tok1")
    assert [n.title for n in pending] == ["pending"]


@pytest.mark.anyio
async def test_pending_is_capped(lifecycle):
    for i in range(PENDING_LIMIT + 5):
        await _create(lifecycle, title=f"n{i}")

    pending = await lifecycle.get_pending_notifications("alice", "tok1")
    assert len(pending) == PENDING_LIMIT
    assert pending[0].title == f"n{PENDING_LIMIT + 4}"


@pytest.mark.anyio
async def test_polling_does_not_mark_read(lifecycle):
    await _create(lifecycle)
    await lifecycle.get_pending_notifications("alice", "tok1")
    assert len(await lifecycle.get_pending_notifications("alice", "tok1")) == 1


@pytest.mark.anyio
async def test_pending_requires_a_target(lifecycle):
    with pytest.raises(ValidationError):
        await lifecycle.get_pending_notifications(None, None)


@pytest.mark.anyio
async def test_mark_read_unknown_id(lifecycle):
    with pytest.raises(NotFoundOrUnauthorizedError):
        await lifecycle.mark_notification_as_read(999999, "alice")


@pytest.mark.anyio
async def test_mark_read_wrong_owner(lifecycle, database):
    notification_id = await _create(lifecycle)

    with pytest.raises(NotFoundOrUnauthorizedError):
        await lifecycle.mark_notification_as_read(notification_id, "mallory")

    async with database.session() as session:
        notification = await session.get(Notification, notification_id)
    assert notification.status == "pending"


@pytest.mark.anyio
async def test_mark_read_twice_refreshes_read_at(lifecycle, database, history):
    notification_id = await _create(lifecycle)

    await lifecycle.mark_notification_as_read(notification_id, "alice")
    async with database.session() as session:
        first = (await session.get(Notification, notification_id)).read_at

    await lifecycle.mark_notification_as_read(notification_id, "alice")
    async with database.session() as session:
        second = (await session.get(Notification, notification_id)).read_at

    assert second >= first
    events = await history.get_events(notification_id)
    assert [e.action for e in events] == ["created", "read", "read"]


@pytest.mark.anyio
async def test_history_joins_device_and_respects_limit(registry, lifecycle):
    await registry.register_device(
        device_token="tok1", uuid="u1", platform="ios", user_id="alice", device_name="iPhone",
    )
    await _create(lifecycle, title="first", target_token="tok1")
    await _create(lifecycle, title="second", target_token="unregistered")
    await _create(lifecycle, title="third")

    history = await lifecycle.get_notification_history("alice", 2)
    assert [n.title for n in history] == ["third", "second"]
    assert history[1].device_name is None

    history = await lifecycle.get_notification_history("alice", 10)
    first = history[-1]
    assert first.device_name == "iPhone"
    assert first.platform == "ios"


@pytest.mark.anyio
async def test_history_excludes_device_only_notifications(lifecycle):
    await _create(lifecycle, target_user_id="carol", target_token="tok1")
    assert await lifecycle.get_notification_history("alice", 10) == []


@pytest.mark.anyio
async def test_stats_counts_trailing_week(lifecycle, database):
    read_id = await _create(lifecycle)
    failed_id = await _create(lifecycle)
    await _create(lifecycle)
    old_id = await _create(lifecycle)
    await _create(lifecycle, target_user_id="bob")
    await lifecycle.mark_notification_as_read(read_id, "alice")
    await set_status(database, failed_id, "failed")
    await age_notification(database, old_id, 8)

    stats = await lifecycle.get_notification_stats("alice")

    assert stats.total == 3
    assert stats.pending == 1
    assert stats.read == 1
    assert stats.failed == 1


@pytest.mark.anyio
async def test_stats_empty_window_is_zero(lifecycle):
    stats = await lifecycle.get_notification_stats("nobody")
    assert (stats.total, stats.pending, stats.read, stats.failed) == (0, 0, 0, 0)


@pytest.mark.anyio
async def test_cleanup_removes_old_read_keeps_old_pending(lifecycle, database):
    read_id = await _create(lifecycle, title="read")
    pending_id = await _create(lifecycle, title="pending")
    fresh_read_id = await _create(lifecycle, title="fresh")
    await lifecycle.mark_notification_as_read(read_id, "alice")
    await lifecycle.mark_notification_as_read(fresh_read_id, "alice")
    await age_notification(database, read_id, 2)
    await age_notification(database, pending_id, 40)

    result = await lifecycle.cleanup_old_notifications(1)

    assert result == {"deleted": 1}
    async with database.session() as session:
        remaining = (await session.execute(select(Notification.id))).scalars().all()
    assert sorted(remaining) == sorted([pending_id, fresh_read_id])


@pytest.mark.anyio
async def test_cleanup_zero_days_never_sweeps_pending(lifecycle, database):
    pending_id = await _create(lifecycle)
    failed_id = await _create(lifecycle)
    await set_status(database, failed_id, "failed")
    await age_notification(database, pending_id, 400)
    await age_notification(database, failed_id, 1)

    result = await lifecycle.cleanup_old_notifications(0)

    assert result["deleted"] == 1
    pending = await lifecycle.get_pending_notifications("alice", None)
    assert [n.id for n in pending] == [pending_id]


@pytest.mark.anyio
async def test_cleanup_keeps_history_rows(lifecycle, database, history):
    notification_id = await _create(lifecycle)
    await lifecycle.mark_notification_as_read(notification_id, "alice")
    await age_notification(database, notification_id, 31)

    await lifecycle.cleanup_old_notifications()

    events = await history.get_events(notification_id)
    assert [e.action for e in events] == ["created", "read"]


@pytest.mark.anyio
async def test_cleanup_rejects_negative_days(lifecycle):
    with pytest.raises(ValidationError):
        await lifecycle.cleanup_old_notifications(-1)


@pytest.mark.anyio
async def test_store_failure_is_wrapped():
    database = MagicMock()
    database.session.side_effect = OperationalError("SELECT", {}, Exception("no such table"))
    lifecycle = NotificationLifecycle(database, MagicMock())

    with pytest.raises(StoreError, match="no such table"):
        await lifecycle.get_notification_stats("alice")


def test_deserialize_missing_payload_is_empty_dict():
    assert deserialize_data(None) == {}
    assert deserialize_data("") == {}


def test_deserialize_malformed_payload():
    with pytest.raises(SerializationError):
        deserialize_data("{not json")


def test_serialize_rejects_unserializable_payload():
    with pytest.raises(SerializationError):
        serialize_data({"when": object()})
