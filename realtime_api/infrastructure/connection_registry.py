# realtime_api/infrastructure/connection_registry.py
"""In-process rooms of live WebSocket connections.

A user may be connected from several devices at once; every connection of a
user joins the room named after that user, so broadcasting to the room
reaches all of them. Chat rooms are joined on demand by the client.

Room bookkeeping never awaits, so it runs to completion on the event loop
without a lock.
"""

from collections import defaultdict

from fastapi import WebSocket


def user_room(user_id: int) -> str:
    return f"user:{user_id}"


def chat_room(chat_id: int) -> str:
    return f"chat:{chat_id}"


class ConnectionRegistry:
    def __init__(self) -> None:
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)
        self._memberships: dict[WebSocket, set[str]] = defaultdict(set)

    async def join(self, room: str, websocket: WebSocket) -> None:
        self._rooms[room].add(websocket)
        self._memberships[websocket].add(room)

    async def join_user(self, user_id: int, websocket: WebSocket) -> None:
        await self.join(user_room(user_id), websocket)

    async def leave(self, websocket: WebSocket) -> None:
        """Drop a connection from every room it joined."""
        rooms = self._memberships.pop(websocket, set())
        for room in rooms:
            self._discard(room, websocket)

    async def discard(self, room: str, websocket: WebSocket) -> None:
        self._discard(room, websocket)
        memberships = self._memberships.get(websocket)
        if memberships is not None:
            memberships.discard(room)
            if not memberships:
                self._memberships.pop(websocket, None)

    def _discard(self, room: str, websocket: WebSocket) -> None:
        connections = self._rooms.get(room)
        if not connections:
            return
        connections.discard(websocket)
        if not connections:
            self._rooms.pop(room, None)

    async def connections(self, room: str) -> list[WebSocket]:
        return list(self._rooms.get(room, ()))

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    def rooms_of(self, websocket: WebSocket) -> set[str]:
        return set(self._memberships.get(websocket, ()))
