# realtime_api/infrastructure/realtime_dispatcher.py
import json
import logging
from typing import Any

from pydantic import BaseModel

from realtime_api.domain.events import OutboundEvent
from realtime_api.infrastructure.connection_registry import ConnectionRegistry, user_room
from realtime_api.infrastructure.redis_client import RedisClient


class RealtimeDispatcher:
    """Pushes events to every live session of a user.

    Delivery is fire-and-forget: offline users miss the event, failed sockets
    are dropped from the registry, and nothing is retried or queued. Every
    emission is also published on the user's Redis channel for relays
    running in other processes.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        redis_client: RedisClient | None,
        logger: logging.Logger,
    ):
        self.registry = registry
        self.redis_client = redis_client
        self.logger = logger

    @staticmethod
    def encode(event: str, payload: Any) -> str:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")
        return json.dumps({"event": event, "data": payload}, default=str)

    async def emit_to_user(self, user_id: int, event: str, payload: Any) -> int:
        """Send ``payload`` under ``event`` to all of the user's connections.

        Returns the number of local connections that accepted the frame.
        """
        room = user_room(user_id)
        frame = self.encode(event, payload)

        delivered = 0
        for websocket in await self.registry.connections(room):
            try:
                await websocket.send_text(frame)
                delivered += 1
            except Exception as e:
                self.logger.warning(f"Dropping dead connection in {room}: {e!s}")
                await self.registry.leave(websocket)

        if self.redis_client is not None:
            try:
                await self.redis_client.publish(room, frame)
            except Exception as e:
                self.logger.error(f"Failed to publish {event} to {room}: {e!s}")

        self.logger.debug(f"Emitted {event} to {room} ({delivered} local sessions)")
        return delivered

    async def new_message(self, user_id: int, message: Any) -> int:
        return await self.emit_to_user(user_id, OutboundEvent.NEW_MESSAGE, message)

    async def message_updated(self, user_id: int, message: Any) -> int:
        return await self.emit_to_user(user_id, OutboundEvent.UPDATE_MESSAGE, message)

    async def message_received(self, user_id: int, message: Any) -> int:
        return await self.emit_to_user(user_id, OutboundEvent.MESSAGE_RECEIVED, message)

    async def message_seen(self, user_id: int, message: Any) -> int:
        return await self.emit_to_user(user_id, OutboundEvent.MESSAGE_SEEN, message)

    async def new_chat(self, user_id: int, chat: Any) -> int:
        return await self.emit_to_user(user_id, OutboundEvent.NEW_CHAT, chat)

    async def new_connection(self, user_id: int, request: Any) -> int:
        return await self.emit_to_user(user_id, OutboundEvent.NEW_CONNECTION, request)

    async def connection_accepted(self, user_id: int, request: Any) -> int:
        return await self.emit_to_user(
            user_id, OutboundEvent.CONNECTION_ACCEPTED, request
        )

    async def connection_canceled(self, user_id: int, request: Any) -> int:
        return await self.emit_to_user(
            user_id, OutboundEvent.CONNECTION_CANCELED, request
        )

    async def new_notification(self, user_id: int, notification: Any) -> int:
        return await self.emit_to_user(
            user_id, OutboundEvent.NEW_NOTIFICATION, notification
        )
