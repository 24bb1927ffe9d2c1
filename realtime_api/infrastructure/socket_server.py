# realtime_api/infrastructure/socket_server.py
import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from realtime_api.domain.events import SocketEnvelope
from realtime_api.gateways.user_gateway import UserGateway
from realtime_api.infrastructure.connection_registry import ConnectionRegistry, user_room
from realtime_api.infrastructure.database import Database
from realtime_api.infrastructure.event_dispatcher import EventDispatcher
from realtime_api.infrastructure.security import SecurityService
from realtime_api.infrastructure.uow import UnitOfWork


class SocketServer:
    """Accepts authenticated sockets and feeds their frames to the dispatcher."""

    def __init__(
        self,
        database: Database,
        security_service: SecurityService,
        registry: ConnectionRegistry,
        event_dispatcher: EventDispatcher,
        logger: logging.Logger,
    ):
        self.database = database
        self.security_service = security_service
        self.registry = registry
        self.event_dispatcher = event_dispatcher
        self.logger = logger

    @staticmethod
    def _extract_token(websocket: WebSocket) -> Optional[str]:
        token = websocket.query_params.get("token")
        if token:
            return token
        authorization = websocket.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return None

    async def authenticate(self, websocket: WebSocket) -> Optional[int]:
        """Resolve the handshake credential to an active user id.

        Any failure closes the socket with a policy violation and no payload.
        """
        token = self._extract_token(websocket)
        user_id = self.security_service.decode_access_token(token) if token else None

        user = None
        if user_id is not None:
            async with self.database.session() as session:
                user = await UserGateway(session, UnitOfWork()).get_user(user_id)

        if user is None or not user.is_active:
            self.logger.info("Rejected socket connection with invalid credentials")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return None
        return user_id

    async def serve(self, websocket: WebSocket) -> None:
        user_id = await self.authenticate(websocket)
        if user_id is None:
            return

        await websocket.accept()
        await self.registry.join_user(user_id, websocket)
        self.logger.info(
            f"User {user_id} connected "
            f"({self.registry.room_size(user_room(user_id))} live sessions)"
        )
        try:
            while True:
                raw = await websocket.receive_text()
                await self.on_inbound(user_id, websocket, raw)
        except WebSocketDisconnect:
            pass
        finally:
            await self.registry.leave(websocket)
            self.logger.info(f"User {user_id} disconnected")

    async def on_inbound(self, user_id: int, websocket: WebSocket, raw: str) -> None:
        try:
            envelope = SocketEnvelope.model_validate_json(raw)
        except ValidationError:
            self.logger.warning(f"Dropping malformed frame from user {user_id}")
            return

        if not self.event_dispatcher.knows(envelope.event):
            self.logger.warning(
                f"Ignoring unknown event {envelope.event!r} from user {user_id}"
            )
            return

        try:
            await self.event_dispatcher.dispatch(
                envelope.event, envelope.data, websocket, user_id
            )
        except Exception as e:
            self.logger.error(f"Handler for {envelope.event} failed: {e!s}")
