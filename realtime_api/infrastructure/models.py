# realtime_api/infrastructure/models.py
from typing import Any, Optional, List
from datetime import UTC, datetime

from realtime_api.domain.entities import ChatKind, ChatRole, MessageType, NotificationType
from realtime_api.infrastructure.database import Base
from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    username: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String)
    first_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    memberships: Mapped[List["ChatMember"]] = relationship(
        "ChatMember", back_populates="user", lazy="select"
    )


class Chat(Base):
    __tablename__ = "chats"

    __table_args__ = (Index("ix_chats_kind_deleted", "kind", "deleted_at"),)

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    kind: Mapped[ChatKind] = mapped_column(Enum(ChatKind), index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    members: Mapped[List["ChatMember"]] = relationship(
        "ChatMember",
        back_populates="chat",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    group: Mapped[Optional["ChatGroup"]] = relationship(
        "ChatGroup",
        back_populates="chat",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )
    messages: Mapped[List["Message"]] = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        lazy="select",
    )
    blocks: Mapped[List["ChatBlock"]] = relationship(
        "ChatBlock",
        back_populates="chat",
        cascade="all, delete-orphan",
        lazy="select",
    )


class ChatGroup(Base):
    __tablename__ = "chat_groups"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    chat_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chats.id", ondelete="CASCADE"), unique=True
    )
    name: Mapped[str] = mapped_column(String, default="")
    icon_url: Mapped[str] = mapped_column(String, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    chat: Mapped[Chat] = relationship("Chat", back_populates="group", lazy="select")


class ChatMember(Base):
    __tablename__ = "chat_members"

    __table_args__ = (Index("ix_chat_members_user_left", "user_id", "left_at"),)

    chat_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True
    )
    role: Mapped[ChatRole] = mapped_column(Enum(ChatRole), default=ChatRole.MEMBER)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    left_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_read_message_id: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )

    chat: Mapped[Chat] = relationship("Chat", back_populates="members", lazy="select")
    user: Mapped[User] = relationship(
        "User",
        back_populates="memberships",
        lazy="joined",  # Many-to-one, often accessed
    )


class Message(Base):
    __tablename__ = "messages"

    __table_args__ = (
        Index("ix_messages_chat_created", "chat_id", "created_at"),
        Index("ix_messages_sender_created", "sender_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    chat_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chats.id", ondelete="CASCADE"), index=True
    )
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    message_type: Mapped[MessageType] = mapped_column(
        Enum(MessageType), default=MessageType.TEXT
    )
    status: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    chat: Mapped[Chat] = relationship("Chat", back_populates="messages", lazy="select")
    sender: Mapped[User] = relationship(
        "User",
        lazy="joined",  # Many-to-one, often accessed
    )
    reactions: Mapped[List["MessageReaction"]] = relationship(
        "MessageReaction",
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    replies: Mapped[List["MessageReply"]] = relationship(
        "MessageReply",
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    statuses: Mapped[List["MessageUserStatus"]] = relationship(
        "MessageUserStatus",
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class MessageUserStatus(Base):
    __tablename__ = "message_user_statuses"

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_status_message_user"),
        Index("ix_message_status_user_received", "user_id", "received_at"),
        Index("ix_message_status_user_seen", "user_id", "seen_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("messages.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    received_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    seen_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    message: Mapped[Message] = relationship(
        "Message", back_populates="statuses", lazy="select"
    )


class MessageReaction(Base):
    __tablename__ = "message_reactions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("messages.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    emoji: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    message: Mapped[Message] = relationship(
        "Message", back_populates="reactions", lazy="select"
    )


class MessageReply(Base):
    __tablename__ = "message_replies"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("messages.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reply_to_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("message_replies.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    message: Mapped[Message] = relationship(
        "Message", back_populates="replies", lazy="select"
    )


class ChatBlock(Base):
    __tablename__ = "chat_blocks"

    __table_args__ = (Index("ix_chat_blocks_chat_blocked_by", "chat_id", "blocked_by"),)

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    chat_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chats.id", ondelete="CASCADE"), index=True
    )
    blocked_by: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    blocked_to: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    chat: Mapped[Chat] = relationship("Chat", back_populates="blocks", lazy="select")


class Notification(Base):
    __tablename__ = "notifications"

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
        Index("ix_notifications_user_read", "user_id", "read"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    text: Mapped[str] = mapped_column(Text)
    type: Mapped[NotificationType] = mapped_column(Enum(NotificationType))
    meta_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    podcast: Mapped[bool] = mapped_column(Boolean, default=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
