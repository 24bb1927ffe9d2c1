# realtime_api/infrastructure/event_dispatcher.py
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import WebSocket

InboundHandler = Callable[[Any, WebSocket, int], Awaitable[None]]


class EventDispatcher:
    """Routes inbound socket events to the handlers registered for them."""

    def __init__(self) -> None:
        self.handlers: dict[str, list[InboundHandler]] = defaultdict(list)

    def register(self, event_type: str, handler: InboundHandler) -> None:
        self.handlers[event_type].append(handler)

    def knows(self, event_type: str) -> bool:
        return bool(self.handlers.get(event_type))

    async def dispatch(
        self, event_type: str, payload: Any, websocket: WebSocket, user_id: int
    ) -> None:
        for handler in self.handlers.get(event_type, ()):
            await handler(payload, websocket, user_id)
