# realtime_api/infrastructure/inbound_handlers.py
import logging
from typing import Any

from fastapi import WebSocket
from pydantic import ValidationError

from realtime_api.domain.events import JoinChat, MessageReceived
from realtime_api.gateways.chat_gateway import ChatGateway
from realtime_api.gateways.delivery_gateway import DeliveryGateway
from realtime_api.gateways.message_gateway import MessageGateway
from realtime_api.infrastructure.connection_registry import ConnectionRegistry, chat_room
from realtime_api.infrastructure.database import Database
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.uow import UnitOfWork
from realtime_api.interactors.delivery_interactor import DeliveryInteractor


class InboundHandlers:
    """Handlers for events sent by connected clients.

    Each handler runs in its own session. Failures are logged and never
    propagate to the socket loop.
    """

    def __init__(
        self,
        database: Database,
        registry: ConnectionRegistry,
        dispatcher: RealtimeDispatcher,
        logger: logging.Logger,
    ):
        self.database = database
        self.registry = registry
        self.dispatcher = dispatcher
        self.logger = logger

    async def join_chat(self, payload: Any, websocket: WebSocket, user_id: int) -> None:
        try:
            event = JoinChat.model_validate(payload)
            async with self.database.session() as session:
                chat_gateway = ChatGateway(session, UnitOfWork())
                chat = await chat_gateway.get_chat_for_member(event.chat_id, user_id)
            if not chat:
                self.logger.warning(
                    f"User {user_id} tried to join chat {event.chat_id} without membership"
                )
                return
            await self.registry.join(chat_room(event.chat_id), websocket)
            self.logger.info(f"User {user_id} joined {chat_room(event.chat_id)}")
        except ValidationError as e:
            self.logger.warning(f"Invalid joinChat payload from user {user_id}: {e!s}")
        except Exception as e:
            self.logger.error(f"joinChat failed for user {user_id}: {e!s}")

    async def message_received(self, payload: Any, websocket: WebSocket, user_id: int) -> None:
        try:
            event = MessageReceived.model_validate(payload)
            if event.user_id is not None and event.user_id != user_id:
                self.logger.warning(
                    f"User {user_id} sent messageReceived on behalf of user {event.user_id}"
                )
                return

            async with self.database.session() as session:
                uow = UnitOfWork()
                interactor = DeliveryInteractor(
                    uow,
                    DeliveryGateway(session, uow),
                    MessageGateway(session, uow),
                    ChatGateway(session, uow),
                    self.dispatcher,
                )
                message = await interactor.mark_received(user_id, event.id)

            if message is None:
                self.logger.debug(
                    f"messageReceived for message {event.id} by user {user_id} was a no-op"
                )
        except ValidationError as e:
            self.logger.warning(
                f"Invalid messageReceived payload from user {user_id}: {e!s}"
            )
        except Exception as e:
            self.logger.error(f"messageReceived failed for user {user_id}: {e!s}")
