# realtime_api/interactors/chat_interactor.py
import math
from typing import List, Optional, Tuple

from realtime_api.domain.entities import ChatKind, ChatRole
from realtime_api.gateways.interfaces import (
    IChatGateway,
    IDeliveryGateway,
    IMessageGateway,
    IUserGateway,
)
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.uow import UnitOfWork

LAST_MESSAGES_PER_CHAT = 2


class ChatInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        chat_gateway: IChatGateway,
        message_gateway: IMessageGateway,
        delivery_gateway: IDeliveryGateway,
        user_gateway: IUserGateway,
        dispatcher: RealtimeDispatcher,
    ):
        self.uow = uow
        self.chat_gateway = chat_gateway
        self.message_gateway = message_gateway
        self.delivery_gateway = delivery_gateway
        self.user_gateway = user_gateway
        self.dispatcher = dispatcher

    async def create_chat(
        self, chat: schemas.ChatCreate, creator_id: int
    ) -> Tuple[schemas.Chat, bool]:
        """Create a chat, or return the existing private chat for the pair.

        The second element tells whether a new chat was created. Only new
        chats are announced to the other members.
        """
        member_ids = list(dict.fromkeys([creator_id, *chat.user_ids]))

        existing = await self.user_gateway.get_existing_ids(member_ids)
        missing = [user_id for user_id in member_ids if user_id not in existing]
        if missing:
            raise LookupError(f"Users not found: {missing}")

        if chat.type == ChatKind.PRIVATE:
            if len(member_ids) != 2:
                raise ValueError("A private chat needs exactly one other user")
            found = await self.chat_gateway.find_private_chat(*member_ids)
            if found:
                return schemas.Chat.model_validate(found._model), False

        members = [
            (user_id, ChatRole.ADMIN if user_id == creator_id else ChatRole.MEMBER)
            for user_id in member_ids
        ]
        group = None
        if chat.type == ChatKind.GROUP:
            group = {
                "name": chat.group_name,
                "icon_url": chat.group_icon,
                "description": chat.group_description,
            }
        new_chat = await self.chat_gateway.create_chat(chat.type, members, group)
        await self.uow.complete()
        result = schemas.Chat.model_validate(new_chat._model)

        for user_id in member_ids:
            if user_id != creator_id:
                await self.dispatcher.new_chat(user_id, result)
        return result, True

    async def get_chats(
        self,
        user_id: int,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> schemas.ChatPage:
        chats, total = await self.chat_gateway.get_all(
            user_id, search, skip=(page - 1) * limit, limit=limit
        )

        summaries: List[schemas.ChatSummary] = []
        members: List[schemas.ChatMember] = []
        groups: List[schemas.ChatGroup] = []
        messages: List[schemas.Message] = []
        for chat in chats:
            counts = await self.delivery_gateway.count_unseen_by_sender(chat.id, user_id)
            recent = await self.message_gateway.get_recent(chat.id, LAST_MESSAGES_PER_CHAT)
            summary = schemas.ChatSummary.model_validate(chat._model).model_copy(
                update={
                    "unseen_message_counts": [
                        schemas.UnseenCount.model_validate(count) for count in counts
                    ],
                    "last_messages": [
                        schemas.Message.model_validate(message._model) for message in recent
                    ],
                }
            )
            summaries.append(summary)
            members.extend(summary.members)
            if summary.group:
                groups.append(summary.group)
            messages.extend(summary.last_messages)

        return schemas.ChatPage(
            data=summaries,
            members=members,
            groups=groups,
            messages=messages,
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    async def get_chat(self, chat_id: int, user_id: int) -> Optional[schemas.Chat]:
        chat = await self.chat_gateway.get_chat_for_member(chat_id, user_id)
        return schemas.Chat.model_validate(chat._model) if chat else None

    async def _require_admin(self, chat_id: int, user_id: int):
        chat = await self.chat_gateway.get_chat_for_member(chat_id, user_id)
        if not chat:
            return None
        member = await self.chat_gateway.get_member(chat_id, user_id)
        if member.role != ChatRole.ADMIN or member.left_at is not None:
            raise PermissionError("Only chat admins can do this")
        return chat

    async def update_group(
        self, chat_id: int, group_update: schemas.ChatGroupUpdate, user_id: int
    ) -> Optional[schemas.Chat]:
        chat = await self._require_admin(chat_id, user_id)
        if not chat:
            return None
        if chat.kind != ChatKind.GROUP:
            raise ValueError("Only group chats have group details")
        updated = await self.chat_gateway.update_group(chat, group_update)
        return schemas.Chat.model_validate(updated._model)

    async def delete_chat(self, chat_id: int, user_id: int) -> bool:
        chat = await self._require_admin(chat_id, user_id)
        if not chat:
            return False
        await self.chat_gateway.soft_delete(chat)
        return True

    async def _set_membership(
        self, chat_id: int, user_id: int, joined: bool
    ) -> Optional[schemas.ChatMember]:
        if not await self.chat_gateway.get_chat(chat_id):
            return None
        member = await self.chat_gateway.set_membership(chat_id, user_id, joined)
        return schemas.ChatMember.model_validate(member._model) if member else None

    async def user_joined(self, chat_id: int, user_id: int) -> Optional[schemas.ChatMember]:
        return await self._set_membership(chat_id, user_id, joined=True)

    async def user_left(self, chat_id: int, user_id: int) -> Optional[schemas.ChatMember]:
        return await self._set_membership(chat_id, user_id, joined=False)

    async def block_user(
        self, chat_id: int, blocked_by: int, blocked_to: int
    ) -> Optional[schemas.ChatBlock]:
        chat = await self.chat_gateway.get_chat_for_member(chat_id, blocked_by)
        if not chat:
            return None
        if blocked_to == blocked_by:
            raise ValueError("Users cannot block themselves")
        if not await self.chat_gateway.get_member(chat_id, blocked_to):
            raise ValueError("Blocked user is not a member of this chat")
        block = await self.chat_gateway.create_block(chat_id, blocked_by, blocked_to)
        return schemas.ChatBlock.model_validate(block._model)

    async def unblock_user(self, chat_id: int, block_id: int, user_id: int) -> bool:
        blocks = await self.chat_gateway.get_blocks(chat_id, user_id)
        if not any(block.id == block_id for block in blocks):
            return False
        return await self.chat_gateway.delete_block(chat_id, block_id) is not None

    async def get_blocks(self, chat_id: int, user_id: int) -> Optional[List[schemas.ChatBlock]]:
        chat = await self.chat_gateway.get_chat_for_member(chat_id, user_id)
        if not chat:
            return None
        blocks = await self.chat_gateway.get_blocks(chat_id, user_id)
        return [schemas.ChatBlock.model_validate(block._model) for block in blocks]
