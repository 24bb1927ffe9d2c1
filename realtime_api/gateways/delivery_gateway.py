# realtime_api/gateways/delivery_gateway.py
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from realtime_api.domain.entities import UnseenCount
from realtime_api.gateways.interfaces import IDeliveryGateway
from realtime_api.infrastructure import models
from realtime_api.infrastructure.data_mappers import register_mappers
from realtime_api.infrastructure.uow import UnitOfWork, UoWModel


class DeliveryGateway(IDeliveryGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        register_mappers(uow, session, models.MessageUserStatus)

    async def get_status(self, message_id: int, user_id: int) -> Optional[UoWModel]:
        stmt = select(models.MessageUserStatus).filter(
            models.MessageUserStatus.message_id == message_id,
            models.MessageUserStatus.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        status = result.scalar_one_or_none()
        return UoWModel(status, self.uow) if status else None

    async def get_status_by_id(self, status_id: int) -> Optional[UoWModel]:
        stmt = select(models.MessageUserStatus).filter(
            models.MessageUserStatus.id == status_id
        )
        result = await self.session.execute(stmt)
        status = result.scalar_one_or_none()
        return UoWModel(status, self.uow) if status else None

    async def ensure_statuses(self, message_id: int, user_ids: Sequence[int]) -> List[int]:
        """Create an untouched row for every user not tracked yet.

        Returns the user ids a row was created for.
        """
        wanted = list(dict.fromkeys(user_ids))
        if not wanted:
            return []

        stmt = select(models.MessageUserStatus.user_id).filter(
            models.MessageUserStatus.message_id == message_id,
            models.MessageUserStatus.user_id.in_(wanted),
        )
        result = await self.session.execute(stmt)
        tracked = set(result.scalars().all())

        created = [user_id for user_id in wanted if user_id not in tracked]
        for user_id in created:
            self.uow.register_new(
                models.MessageUserStatus(message_id=message_id, user_id=user_id)
            )
        if created:
            await self.uow.commit()
        return created

    async def create_status(
        self,
        message_id: int,
        user_id: int,
        received_at: Optional[datetime] = None,
        seen_at: Optional[datetime] = None,
    ) -> UoWModel:
        status = models.MessageUserStatus(
            message_id=message_id,
            user_id=user_id,
            received_at=received_at,
            seen_at=seen_at,
        )
        uow_status = self.uow.register_new(status)
        await self.uow.commit()
        return uow_status

    async def count_unseen_by_sender(self, chat_id: int, viewer_id: int) -> List[UnseenCount]:
        stmt = (
            select(models.Message.sender_id, func.count(models.Message.id))
            .join(
                models.MessageUserStatus,
                models.MessageUserStatus.message_id == models.Message.id,
            )
            .filter(
                models.Message.chat_id == chat_id,
                models.Message.sender_id != viewer_id,
                models.MessageUserStatus.user_id == viewer_id,
                models.MessageUserStatus.received_at.is_not(None),
                models.MessageUserStatus.seen_at.is_(None),
            )
            .group_by(models.Message.sender_id)
            .order_by(models.Message.sender_id)
        )
        result = await self.session.execute(stmt)
        return [UnseenCount(sender_id=sender_id, count=count) for sender_id, count in result.all()]

    async def get_undelivered_messages(self, user_id: int) -> List[UoWModel]:
        stmt = (
            select(models.Message)
            .join(
                models.MessageUserStatus,
                models.MessageUserStatus.message_id == models.Message.id,
            )
            .join(models.Chat, models.Chat.id == models.Message.chat_id)
            .filter(
                models.MessageUserStatus.user_id == user_id,
                models.MessageUserStatus.received_at.is_(None),
                models.Chat.deleted_at.is_(None),
            )
            .order_by(models.Message.created_at.desc(), models.Message.id.desc())
        )
        result = await self.session.execute(stmt)
        return [UoWModel(message, self.uow) for message in result.unique().scalars().all()]
