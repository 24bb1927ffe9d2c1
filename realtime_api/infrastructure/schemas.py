# realtime_api/infrastructure/schemas.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from realtime_api.domain.entities import (
    ChatKind,
    ChatRole,
    MessageSendStatus,
    MessageType,
    NotificationType,
)


class UserBase(BaseModel):
    username: str
    email: EmailStr
    first_name: str | None = None
    last_name: str | None = None


class UserBasic(BaseModel):
    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class User(UserBase):
    id: int
    created_at: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    expires_at: datetime
    user_id: int


class ChatGroup(BaseModel):
    name: str
    icon_url: str
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ChatGroupUpdate(BaseModel):
    name: str | None = None
    icon_url: str | None = None
    description: str | None = None


class ChatMember(BaseModel):
    chat_id: int
    user_id: int
    role: ChatRole
    joined_at: datetime
    left_at: datetime | None = None
    last_read_message_id: int | None = None
    user: UserBasic

    model_config = ConfigDict(from_attributes=True)


class ChatCreate(BaseModel):
    type: ChatKind
    user_ids: list[int] = Field(..., min_length=1)
    group_name: str | None = None
    group_icon: str | None = None
    group_description: str | None = None


class Chat(BaseModel):
    id: int
    kind: ChatKind
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    members: list[ChatMember] = Field(default_factory=list)
    group: ChatGroup | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageReaction(BaseModel):
    id: int
    message_id: int
    user_id: int
    emoji: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReactionCreate(BaseModel):
    emoji: str = Field(..., min_length=1)


class MessageReply(BaseModel):
    id: int
    message_id: int
    user_id: int
    text: str | None = None
    reply_to_id: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReplyCreate(BaseModel):
    text: str | None = None
    reply_to_id: int | None = None


class MessageStatus(BaseModel):
    id: int
    message_id: int
    user_id: int
    received_at: datetime | None = None
    seen_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageStatusUpdate(BaseModel):
    received_at: datetime | None = None
    seen_at: datetime | None = None

    @model_validator(mode="after")
    def check_any_field(self):
        if self.received_at is None and self.seen_at is None:
            raise ValueError("received_at or seen_at must be provided")
        return self


class MessageCreate(BaseModel):
    text: str | None = None
    file_url: str | None = None
    message_type: MessageType = MessageType.TEXT


class MessageUpdate(BaseModel):
    text: str | None = None
    file_url: str | None = None
    message_type: MessageType | None = None
    status: MessageSendStatus | None = None


class Message(BaseModel):
    id: int
    chat_id: int
    sender_id: int
    text: str | None = None
    file_url: str | None = None
    message_type: MessageType
    status: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    sender: UserBasic | None = None
    reactions: list[MessageReaction] = Field(default_factory=list)
    replies: list[MessageReply] = Field(default_factory=list)
    statuses: list[MessageStatus] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class MessagesByDate(BaseModel):
    date: str
    data: list[Message]


class MessageHistory(BaseModel):
    data: list[MessagesByDate]
    chat_id: int
    page: int
    limit: int
    total: int
    total_pages: int


class UnseenCount(BaseModel):
    sender_id: int
    count: int

    model_config = ConfigDict(from_attributes=True)


class ChatSummary(Chat):
    unseen_message_counts: list[UnseenCount] = Field(default_factory=list)
    last_messages: list[Message] = Field(default_factory=list)


class ChatPage(BaseModel):
    data: list[ChatSummary]
    members: list[ChatMember]
    groups: list[ChatGroup]
    messages: list[Message]
    page: int
    limit: int
    total: int
    total_pages: int


class ChatBlockCreate(BaseModel):
    blocked_to: int


class ChatBlock(BaseModel):
    id: int
    chat_id: int
    blocked_by: int
    blocked_to: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationCreate(BaseModel):
    user_id: int
    text: str
    type: NotificationType
    meta_data: dict[str, Any] | None = None
    icon: str | None = None
    podcast: bool = False


class Notification(BaseModel):
    id: int
    user_id: int
    text: str
    type: NotificationType
    meta_data: dict[str, Any] | None = None
    icon: str | None = None
    podcast: bool
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationWithSender(Notification):
    sender: UserBasic | None = None


class NotificationPage(BaseModel):
    data: list[NotificationWithSender]
    total: int
    unread_count: int
    page: int
    page_size: int
    total_pages: int


class MarkBulkRead(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class BulkReadResult(BaseModel):
    updated: int
