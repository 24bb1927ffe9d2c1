# realtime_api/gateways/notification_gateway.py
from typing import List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from realtime_api.gateways.interfaces import INotificationGateway
from realtime_api.infrastructure import models, schemas
from realtime_api.infrastructure.data_mappers import register_mappers
from realtime_api.infrastructure.uow import UnitOfWork, UoWModel


class NotificationGateway(INotificationGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        register_mappers(uow, session, models.Notification)

    async def create(self, notification: schemas.NotificationCreate) -> UoWModel:
        db_notification = models.Notification(**notification.model_dump(), read=False)
        uow_notification = self.uow.register_new(db_notification)
        await self.uow.commit()
        return uow_notification

    async def get_page(self, user_id: int, skip: int, take: int) -> List[UoWModel]:
        stmt = (
            select(models.Notification)
            .filter(models.Notification.user_id == user_id)
            .order_by(models.Notification.created_at.desc(), models.Notification.id.desc())
            .offset(skip)
            .limit(take)
        )
        result = await self.session.execute(stmt)
        return [UoWModel(n, self.uow) for n in result.scalars().all()]

    async def count(self, user_id: int, unread_only: bool = False) -> int:
        stmt = select(func.count(models.Notification.id)).filter(
            models.Notification.user_id == user_id
        )
        if unread_only:
            stmt = stmt.filter(models.Notification.read.is_(False))
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def mark_read(self, notification_id: int, user_id: int) -> Optional[UoWModel]:
        stmt = select(models.Notification).filter(
            models.Notification.id == notification_id,
            models.Notification.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        notification = result.scalar_one_or_none()
        if not notification:
            return None
        uow_notification = UoWModel(notification, self.uow)
        if not notification.read:
            uow_notification.read = True
            await self.uow.commit()
        return uow_notification

    async def mark_bulk_read(self, notification_ids: Sequence[int], user_id: int) -> int:
        # ids owned by someone else are ignored rather than reported
        stmt = (
            update(models.Notification)
            .where(
                models.Notification.id.in_(list(notification_ids)),
                models.Notification.user_id == user_id,
                models.Notification.read.is_(False),
            )
            .values(read=True)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount
