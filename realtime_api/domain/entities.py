# realtime_api/domain/entities.py
from dataclasses import dataclass
from enum import StrEnum


class ChatKind(StrEnum):
    PRIVATE = "PRIVATE"
    GROUP = "GROUP"


class ChatRole(StrEnum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class MessageType(StrEnum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    FILE = "FILE"


class MessageSendStatus(StrEnum):
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationType(StrEnum):
    CHAT_MESSAGE = "CHAT_MESSAGE"
    CONNECTION_REQUEST = "CONNECTION_REQUEST"
    CONNECTION_ACCEPTED = "CONNECTION_ACCEPTED"
    JOB_APPLICATION = "JOB_APPLICATION"
    JOB_POSTED = "JOB_POSTED"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class UnseenCount:
    sender_id: int
    count: int
