# realtime_api/tests/unit/test_realtime_dispatcher.py
import json
import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from realtime_api.domain.entities import NotificationType
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.connection_registry import ConnectionRegistry, user_room
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.redis_client import RedisClient


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def redis_client(test_logger, mock_redis):
    client = RedisClient("localhost", 6379, test_logger)
    client.client = mock_redis
    return client


@pytest.fixture
def realtime(registry, redis_client, test_logger):
    return RealtimeDispatcher(registry, redis_client, test_logger)


def frame_of(websocket):
    return json.loads(websocket.send_text.await_args.args[0])


async def test_emit_reaches_every_live_session(realtime, registry):
    sessions = [AsyncMock(), AsyncMock(), AsyncMock()]
    for websocket in sessions:
        await registry.join_user(1, websocket)
    bystander = AsyncMock()
    await registry.join_user(2, bystander)

    delivered = await realtime.emit_to_user(1, "newChat", {"id": 3})

    assert delivered == 3
    for websocket in sessions:
        assert frame_of(websocket) == {"event": "newChat", "data": {"id": 3}}
    bystander.send_text.assert_not_awaited()


async def test_dead_session_is_dropped_without_error(realtime, registry, caplog):
    alive, dead = AsyncMock(), AsyncMock()
    dead.send_text.side_effect = RuntimeError("socket closed")
    await registry.join_user(1, alive)
    await registry.join_user(1, dead)

    delivered = await realtime.emit_to_user(1, "newChat", {"id": 3})

    assert delivered == 1
    alive.send_text.assert_awaited_once()
    assert await registry.connections(user_room(1)) == [alive]
    assert "Dropping dead connection" in caplog.text


async def test_offline_user_is_a_silent_no_op(realtime):
    assert await realtime.emit_to_user(99, "newChat", {"id": 1}) == 0


async def test_emission_is_mirrored_on_redis(realtime, redis_client):
    redis_client.client = AsyncMock()

    await realtime.emit_to_user(4, "messageSeen", {"id": 8})

    channel, payload = redis_client.client.publish.await_args.args
    assert channel == "user:4"
    assert json.loads(payload) == {"event": "messageSeen", "data": {"id": 8}}


async def test_redis_failure_does_not_block_local_delivery(realtime, registry, redis_client, caplog):
    caplog.set_level(logging.ERROR)
    redis_client.client = AsyncMock()
    redis_client.client.publish.side_effect = ConnectionError("redis down")
    websocket = AsyncMock()
    await registry.join_user(4, websocket)

    delivered = await realtime.emit_to_user(4, "messageSeen", {"id": 8})

    assert delivered == 1
    assert "Failed to publish messageSeen to user:4" in caplog.text


async def test_dispatcher_without_redis(registry, test_logger):
    realtime = RealtimeDispatcher(registry, None, test_logger)
    websocket = AsyncMock()
    await registry.join_user(1, websocket)

    assert await realtime.new_connection(1, {"requestId": 1}) == 1
    assert frame_of(websocket)["event"] == "newConnection"


async def test_pydantic_payloads_are_serialised(realtime, registry):
    websocket = AsyncMock()
    await registry.join_user(5, websocket)
    notification = schemas.Notification(
        id=1,
        user_id=5,
        text="Your application was viewed",
        type=NotificationType.JOB_APPLICATION,
        meta_data={"jobId": 12},
        podcast=False,
        read=False,
        created_at=datetime(2024, 5, 1, 9, 30, tzinfo=UTC),
    )

    await realtime.new_notification(5, notification)

    frame = frame_of(websocket)
    assert frame["event"] == "newNotification"
    assert frame["data"]["type"] == "JOB_APPLICATION"
    assert frame["data"]["meta_data"] == {"jobId": 12}
    assert frame["data"]["created_at"].startswith("2024-05-01T09:30:00")


@pytest.mark.parametrize(
    "helper, event",
    [
        ("new_message", "newMessage"),
        ("message_updated", "updateMessage"),
        ("message_received", "messageReceived"),
        ("message_seen", "messageSeen"),
        ("new_chat", "newChat"),
        ("new_connection", "newConnection"),
        ("connection_accepted", "connectionAccepted"),
        ("connection_canceled", "connectionCanceled"),
        ("new_notification", "newNotification"),
    ],
)
async def test_helpers_use_wire_event_names(realtime, registry, helper, event):
    websocket = AsyncMock()
    await registry.join_user(1, websocket)

    await getattr(realtime, helper)(1, {"id": 1})

    assert frame_of(websocket)["event"] == event
