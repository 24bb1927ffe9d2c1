# realtime_api/gateways/interfaces.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from realtime_api.domain.entities import ChatKind, ChatRole, UnseenCount
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.security import SecurityService
from realtime_api.infrastructure.uow import UoWModel


class IUserGateway(ABC):
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_existing_ids(self, user_ids: Sequence[int]) -> set[int]:
        pass

    @abstractmethod
    async def create_user(
        self, user: schemas.UserCreate, security_service: SecurityService
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        pass


class IChatGateway(ABC):
    @abstractmethod
    async def get_chat(self, chat_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_chat_for_member(self, chat_id: int, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def find_private_chat(self, user_id: int, other_user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_chat(
        self,
        kind: ChatKind,
        members: Sequence[Tuple[int, ChatRole]],
        group: Optional[dict] = None,
    ) -> UoWModel:
        pass

    @abstractmethod
    async def get_all(
        self, user_id: int, search: Optional[str] = None, skip: int = 0, limit: int = 20
    ) -> Tuple[List[UoWModel], int]:
        pass

    @abstractmethod
    async def get_member(self, chat_id: int, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_member_ids(
        self, chat_id: int, exclude_user_id: Optional[int] = None
    ) -> List[int]:
        pass

    @abstractmethod
    async def set_membership(
        self, chat_id: int, user_id: int, joined: bool
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def update_group(self, chat: UoWModel, group_update: schemas.ChatGroupUpdate) -> UoWModel:
        pass

    @abstractmethod
    async def soft_delete(self, chat: UoWModel) -> UoWModel:
        pass

    @abstractmethod
    async def touch(self, chat_id: int, when: datetime) -> None:
        pass

    @abstractmethod
    async def create_block(self, chat_id: int, blocked_by: int, blocked_to: int) -> UoWModel:
        pass

    @abstractmethod
    async def get_blocks(self, chat_id: int, blocked_by: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def delete_block(self, chat_id: int, block_id: int) -> Optional[UoWModel]:
        pass


class IMessageGateway(ABC):
    @abstractmethod
    async def get_message(self, message_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_message_for_member(self, message_id: int, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_recent(self, chat_id: int, take: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def count(self, chat_id: int) -> int:
        pass

    @abstractmethod
    async def get_message_timestamps(self, chat_id: int) -> List[datetime]:
        pass

    @abstractmethod
    async def create_message(
        self, chat_id: int, sender_id: int, message: schemas.MessageCreate
    ) -> UoWModel:
        pass

    @abstractmethod
    async def update_message(
        self, message: UoWModel, message_update: schemas.MessageUpdate
    ) -> UoWModel:
        pass

    @abstractmethod
    async def delete_message(self, message: UoWModel) -> None:
        pass

    @abstractmethod
    async def add_reaction(self, message_id: int, user_id: int, emoji: str) -> UoWModel:
        pass

    @abstractmethod
    async def delete_reaction(self, message_id: int, reaction_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def add_reply(
        self, message_id: int, user_id: int, reply: schemas.ReplyCreate
    ) -> UoWModel:
        pass

    @abstractmethod
    async def get_reply(self, message_id: int, reply_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def delete_reply(self, message_id: int, reply_id: int) -> Optional[UoWModel]:
        pass


class IDeliveryGateway(ABC):
    @abstractmethod
    async def get_status(self, message_id: int, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_status_by_id(self, status_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def ensure_statuses(self, message_id: int, user_ids: Sequence[int]) -> List[int]:
        pass

    @abstractmethod
    async def create_status(
        self,
        message_id: int,
        user_id: int,
        received_at: Optional[datetime] = None,
        seen_at: Optional[datetime] = None,
    ) -> UoWModel:
        pass

    @abstractmethod
    async def count_unseen_by_sender(self, chat_id: int, viewer_id: int) -> List[UnseenCount]:
        pass

    @abstractmethod
    async def get_undelivered_messages(self, user_id: int) -> List[UoWModel]:
        pass


class INotificationGateway(ABC):
    @abstractmethod
    async def create(self, notification: schemas.NotificationCreate) -> UoWModel:
        pass

    @abstractmethod
    async def get_page(self, user_id: int, skip: int, take: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def count(self, user_id: int, unread_only: bool = False) -> int:
        pass

    @abstractmethod
    async def mark_read(self, notification_id: int, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def mark_bulk_read(self, notification_ids: Sequence[int], user_id: int) -> int:
        pass
