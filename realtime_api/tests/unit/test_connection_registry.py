# realtime_api/tests/unit/test_connection_registry.py
import asyncio
from unittest.mock import AsyncMock

from realtime_api.infrastructure.connection_registry import (
    ConnectionRegistry,
    chat_room,
    user_room,
)


def test_room_names():
    assert user_room(5) == "user:5"
    assert chat_room(5) == "chat:5"


async def test_user_may_hold_several_connections():
    registry = ConnectionRegistry()
    phone, laptop = AsyncMock(), AsyncMock()

    await registry.join_user(1, phone)
    await registry.join_user(1, laptop)

    assert set(await registry.connections(user_room(1))) == {phone, laptop}
    assert registry.room_size(user_room(1)) == 2


async def test_leave_removes_connection_from_every_room():
    registry = ConnectionRegistry()
    websocket, other = AsyncMock(), AsyncMock()
    await registry.join_user(1, websocket)
    await registry.join(chat_room(10), websocket)
    await registry.join_user(1, other)

    await registry.leave(websocket)

    assert await registry.connections(user_room(1)) == [other]
    assert await registry.connections(chat_room(10)) == []
    assert registry.rooms_of(websocket) == set()


async def test_discard_leaves_other_rooms_intact():
    registry = ConnectionRegistry()
    websocket = AsyncMock()
    await registry.join_user(1, websocket)
    await registry.join(chat_room(10), websocket)

    await registry.discard(chat_room(10), websocket)

    assert registry.rooms_of(websocket) == {user_room(1)}
    assert registry.room_size(chat_room(10)) == 0


async def test_unknown_room_is_empty():
    registry = ConnectionRegistry()
    assert await registry.connections(user_room(404)) == []
    await registry.leave(AsyncMock())


async def test_concurrent_joins_are_all_recorded():
    registry = ConnectionRegistry()
    sockets = [AsyncMock() for _ in range(20)]

    await asyncio.gather(*(registry.join_user(1, ws) for ws in sockets))

    assert registry.room_size(user_room(1)) == 20


async def test_connections_survive_leaving_during_iteration():
    registry = ConnectionRegistry()
    sockets = [AsyncMock() for _ in range(3)]
    for ws in sockets:
        await registry.join_user(1, ws)

    seen = []
    for ws in await registry.connections(user_room(1)):
        await registry.leave(ws)
        seen.append(ws)

    assert set(seen) == set(sockets)
    assert registry.room_size(user_room(1)) == 0
