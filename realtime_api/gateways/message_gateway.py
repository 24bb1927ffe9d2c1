# realtime_api/gateways/message_gateway.py
from datetime import UTC, datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from realtime_api.gateways.interfaces import IMessageGateway
from realtime_api.infrastructure import models, schemas
from realtime_api.infrastructure.data_mappers import register_mappers
from realtime_api.infrastructure.uow import UnitOfWork, UoWModel


class MessageGateway(IMessageGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        register_mappers(
            uow,
            session,
            models.Message,
            models.MessageReaction,
            models.MessageReply,
        )

    async def get_message(self, message_id: int) -> Optional[UoWModel]:
        # populate_existing refreshes the child collections of a message that
        # is already in the identity map
        stmt = (
            select(models.Message)
            .filter(models.Message.id == message_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        message = result.unique().scalar_one_or_none()
        return UoWModel(message, self.uow) if message else None

    async def get_message_for_member(self, message_id: int, user_id: int) -> Optional[UoWModel]:
        stmt = (
            select(models.Message)
            .join(models.Chat, models.Chat.id == models.Message.chat_id)
            .filter(
                models.Message.id == message_id,
                models.Chat.deleted_at.is_(None),
                models.Chat.members.any(models.ChatMember.user_id == user_id),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        message = result.unique().scalar_one_or_none()
        return UoWModel(message, self.uow) if message else None

    async def get_recent(self, chat_id: int, take: int) -> List[UoWModel]:
        stmt = (
            select(models.Message)
            .filter(models.Message.chat_id == chat_id)
            .order_by(models.Message.created_at.desc(), models.Message.id.desc())
            .limit(take)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [UoWModel(message, self.uow) for message in result.unique().scalars().all()]

    async def count(self, chat_id: int) -> int:
        stmt = select(func.count(models.Message.id)).filter(
            models.Message.chat_id == chat_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_message_timestamps(self, chat_id: int) -> List[datetime]:
        stmt = (
            select(models.Message.created_at)
            .filter(models.Message.chat_id == chat_id)
            .order_by(models.Message.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_message(
        self, chat_id: int, sender_id: int, message: schemas.MessageCreate
    ) -> UoWModel:
        db_message = models.Message(
            chat_id=chat_id,
            sender_id=sender_id,
            text=message.text,
            file_url=message.file_url,
            message_type=message.message_type,
            created_at=datetime.now(UTC),
        )
        self.uow.register_new(db_message)
        await self.uow.commit()
        return UoWModel(db_message, self.uow)

    async def update_message(
        self, message: UoWModel, message_update: schemas.MessageUpdate
    ) -> UoWModel:
        for key, value in message_update.model_dump(exclude_unset=True).items():
            setattr(message, key, value)
        message.updated_at = datetime.now(UTC)
        await self.uow.commit()
        return await self.get_message(message.id)

    async def delete_message(self, message: UoWModel) -> None:
        self.uow.register_deleted(message)
        await self.uow.commit()

    async def add_reaction(self, message_id: int, user_id: int, emoji: str) -> UoWModel:
        reaction = models.MessageReaction(
            message_id=message_id, user_id=user_id, emoji=emoji
        )
        uow_reaction = self.uow.register_new(reaction)
        await self.uow.commit()
        return uow_reaction

    async def delete_reaction(self, message_id: int, reaction_id: int) -> Optional[UoWModel]:
        stmt = select(models.MessageReaction).filter(
            models.MessageReaction.id == reaction_id,
            models.MessageReaction.message_id == message_id,
        )
        result = await self.session.execute(stmt)
        reaction = result.scalar_one_or_none()
        if not reaction:
            return None
        uow_reaction = UoWModel(reaction, self.uow)
        self.uow.register_deleted(reaction)
        await self.uow.commit()
        return uow_reaction

    async def add_reply(
        self, message_id: int, user_id: int, reply: schemas.ReplyCreate
    ) -> UoWModel:
        db_reply = models.MessageReply(
            message_id=message_id,
            user_id=user_id,
            text=reply.text,
            reply_to_id=reply.reply_to_id,
        )
        uow_reply = self.uow.register_new(db_reply)
        await self.uow.commit()
        return uow_reply

    async def get_reply(self, message_id: int, reply_id: int) -> Optional[UoWModel]:
        stmt = select(models.MessageReply).filter(
            models.MessageReply.id == reply_id,
            models.MessageReply.message_id == message_id,
        )
        result = await self.session.execute(stmt)
        reply = result.scalar_one_or_none()
        return UoWModel(reply, self.uow) if reply else None

    async def delete_reply(self, message_id: int, reply_id: int) -> Optional[UoWModel]:
        reply = await self.get_reply(message_id, reply_id)
        if not reply:
            return None
        self.uow.register_deleted(reply)
        await self.uow.commit()
        return reply
