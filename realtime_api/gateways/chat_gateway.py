# realtime_api/gateways/chat_gateway.py
from datetime import UTC, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from realtime_api.domain.entities import ChatKind, ChatRole
from realtime_api.gateways.interfaces import IChatGateway
from realtime_api.infrastructure import models, schemas
from realtime_api.infrastructure.data_mappers import register_mappers
from realtime_api.infrastructure.uow import UnitOfWork, UoWModel


class ChatGateway(IChatGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        register_mappers(
            uow,
            session,
            models.Chat,
            models.ChatMember,
            models.ChatGroup,
            models.ChatBlock,
        )

    async def _load(self, chat_id: int) -> Optional[models.Chat]:
        stmt = (
            select(models.Chat)
            .filter(models.Chat.id == chat_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_chat(self, chat_id: int) -> Optional[UoWModel]:
        chat = await self._load(chat_id)
        if not chat or chat.deleted_at is not None:
            return None
        return UoWModel(chat, self.uow)

    async def get_chat_for_member(self, chat_id: int, user_id: int) -> Optional[UoWModel]:
        stmt = select(models.Chat).filter(
            models.Chat.id == chat_id,
            models.Chat.deleted_at.is_(None),
            models.Chat.members.any(models.ChatMember.user_id == user_id),
        )
        result = await self.session.execute(stmt)
        chat = result.scalar_one_or_none()
        return UoWModel(chat, self.uow) if chat else None

    async def find_private_chat(self, user_id: int, other_user_id: int) -> Optional[UoWModel]:
        # private chats always hold exactly two members, so containing both
        # users means the membership sets are equal
        stmt = (
            select(models.Chat)
            .filter(
                models.Chat.kind == ChatKind.PRIVATE,
                models.Chat.deleted_at.is_(None),
                models.Chat.members.any(models.ChatMember.user_id == user_id),
                models.Chat.members.any(models.ChatMember.user_id == other_user_id),
            )
            .order_by(models.Chat.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        chat = result.scalar_one_or_none()
        return UoWModel(chat, self.uow) if chat else None

    async def create_chat(
        self,
        kind: ChatKind,
        members: Sequence[Tuple[int, ChatRole]],
        group: Optional[dict] = None,
    ) -> UoWModel:
        now = datetime.now(UTC)
        db_chat = models.Chat(kind=kind, created_at=now, updated_at=now)
        db_chat.members = [
            models.ChatMember(user_id=user_id, role=role, joined_at=now)
            for user_id, role in members
        ]
        if kind == ChatKind.GROUP:
            db_chat.group = models.ChatGroup(
                name=(group or {}).get("name") or "",
                icon_url=(group or {}).get("icon_url") or "",
                description=(group or {}).get("description"),
            )
        self.uow.register_new(db_chat)
        await self.uow.commit()

        # Reload so member users and the group come back eagerly loaded
        chat = await self._load(db_chat.id)
        return UoWModel(chat, self.uow)

    def _visible_to(self, user_id: int, search: Optional[str]):
        criteria = [
            models.Chat.deleted_at.is_(None),
            models.Chat.members.any(models.ChatMember.user_id == user_id),
        ]
        if search:
            pattern = f"%{search}%"
            group_match = and_(
                models.Chat.kind == ChatKind.GROUP,
                models.Chat.group.has(models.ChatGroup.name.ilike(pattern)),
            )
            other_member_match = and_(
                models.Chat.kind == ChatKind.PRIVATE,
                models.Chat.members.any(
                    and_(
                        models.ChatMember.user_id != user_id,
                        models.ChatMember.user.has(
                            or_(
                                models.User.first_name.ilike(pattern),
                                models.User.last_name.ilike(pattern),
                                models.User.username.ilike(pattern),
                            )
                        ),
                    )
                ),
            )
            criteria.append(or_(group_match, other_member_match))
        return criteria

    async def get_all(
        self, user_id: int, search: Optional[str] = None, skip: int = 0, limit: int = 20
    ) -> Tuple[List[UoWModel], int]:
        criteria = self._visible_to(user_id, search)

        count_stmt = select(func.count(models.Chat.id)).filter(*criteria)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(models.Chat)
            .filter(*criteria)
            .order_by(models.Chat.updated_at.desc(), models.Chat.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        chats = result.scalars().all()
        return [UoWModel(chat, self.uow) for chat in chats], total

    async def get_member(self, chat_id: int, user_id: int) -> Optional[UoWModel]:
        stmt = select(models.ChatMember).filter(
            models.ChatMember.chat_id == chat_id, models.ChatMember.user_id == user_id
        )
        result = await self.session.execute(stmt)
        member = result.unique().scalar_one_or_none()
        return UoWModel(member, self.uow) if member else None

    async def get_member_ids(
        self, chat_id: int, exclude_user_id: Optional[int] = None
    ) -> List[int]:
        stmt = select(models.ChatMember.user_id).filter(
            models.ChatMember.chat_id == chat_id, models.ChatMember.left_at.is_(None)
        )
        if exclude_user_id is not None:
            stmt = stmt.filter(models.ChatMember.user_id != exclude_user_id)
        stmt = stmt.order_by(models.ChatMember.user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_membership(
        self, chat_id: int, user_id: int, joined: bool
    ) -> Optional[UoWModel]:
        member = await self.get_member(chat_id, user_id)
        if not member:
            return None
        now = datetime.now(UTC)
        if joined:
            member.joined_at = now
            member.left_at = None
        else:
            member.left_at = now
        await self.uow.commit()
        return member

    async def update_group(self, chat: UoWModel, group_update: schemas.ChatGroupUpdate) -> UoWModel:
        db_chat = chat._model
        if db_chat.group is None:
            db_chat.group = models.ChatGroup(name="", icon_url="")
        for key, value in group_update.model_dump(exclude_unset=True).items():
            setattr(db_chat.group, key, value)
        db_chat.updated_at = datetime.now(UTC)
        self.uow.register_dirty(db_chat)
        await self.uow.commit()
        return UoWModel(await self._load(db_chat.id), self.uow)

    async def soft_delete(self, chat: UoWModel) -> UoWModel:
        chat.deleted_at = datetime.now(UTC)
        await self.uow.commit()
        return chat

    async def touch(self, chat_id: int, when: datetime) -> None:
        stmt = select(models.Chat).filter(models.Chat.id == chat_id)
        result = await self.session.execute(stmt)
        chat = result.scalar_one_or_none()
        if chat:
            chat.updated_at = when
            self.uow.register_dirty(chat)
            await self.uow.commit()

    async def create_block(self, chat_id: int, blocked_by: int, blocked_to: int) -> UoWModel:
        block = models.ChatBlock(
            chat_id=chat_id, blocked_by=blocked_by, blocked_to=blocked_to
        )
        uow_block = self.uow.register_new(block)
        await self.uow.commit()
        return uow_block

    async def get_blocks(self, chat_id: int, blocked_by: int) -> List[UoWModel]:
        stmt = (
            select(models.ChatBlock)
            .filter(
                models.ChatBlock.chat_id == chat_id,
                models.ChatBlock.blocked_by == blocked_by,
            )
            .order_by(models.ChatBlock.created_at)
        )
        result = await self.session.execute(stmt)
        return [UoWModel(block, self.uow) for block in result.scalars().all()]

    async def delete_block(self, chat_id: int, block_id: int) -> Optional[UoWModel]:
        stmt = select(models.ChatBlock).filter(
            models.ChatBlock.id == block_id, models.ChatBlock.chat_id == chat_id
        )
        result = await self.session.execute(stmt)
        block = result.scalar_one_or_none()
        if not block:
            return None
        uow_block = UoWModel(block, self.uow)
        self.uow.register_deleted(block)
        await self.uow.commit()
        return uow_block
