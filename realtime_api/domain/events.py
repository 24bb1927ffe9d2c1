# realtime_api/domain/events.py
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OutboundEvent(StrEnum):
    NEW_MESSAGE = "newMessage"
    UPDATE_MESSAGE = "updateMessage"
    MESSAGE_RECEIVED = "messageReceived"
    MESSAGE_SEEN = "messageSeen"
    NEW_CHAT = "newChat"
    NEW_CONNECTION = "newConnection"
    CONNECTION_ACCEPTED = "connectionAccepted"
    CONNECTION_CANCELED = "connectionCanceled"
    NEW_NOTIFICATION = "newNotification"


class InboundEvent(StrEnum):
    JOIN_CHAT = "joinChat"
    MESSAGE_RECEIVED = "messageReceived"


class Event(BaseModel):
    pass


class SocketEnvelope(Event):
    """Frame exchanged over the socket in both directions."""

    event: str
    data: Any = None


class JoinChat(Event):
    chat_id: int = Field(alias="chatId")

    model_config = ConfigDict(populate_by_name=True)


class MessageReceived(Event):
    id: int
    user_id: int | None = Field(None, alias="userId")

    model_config = ConfigDict(populate_by_name=True)
