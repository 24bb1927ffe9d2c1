# realtime_api/interactors/notification_interactor.py
import math
from typing import Dict, List, Optional, Sequence

from realtime_api.gateways.interfaces import INotificationGateway, IUserGateway
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.uow import UnitOfWork


class NotificationInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        notification_gateway: INotificationGateway,
        user_gateway: IUserGateway,
        dispatcher: RealtimeDispatcher,
    ):
        self.uow = uow
        self.notification_gateway = notification_gateway
        self.user_gateway = user_gateway
        self.dispatcher = dispatcher

    async def create(
        self, notification: schemas.NotificationCreate
    ) -> Optional[schemas.Notification]:
        if not await self.user_gateway.get_user(notification.user_id):
            return None
        new_notification = await self.notification_gateway.create(notification)
        await self.uow.complete()
        result = schemas.Notification.model_validate(new_notification._model)
        await self.dispatcher.new_notification(result.user_id, result)
        return result

    async def _resolve_sender(
        self, meta_data: Optional[dict], cache: Dict[int, Optional[schemas.UserBasic]]
    ) -> Optional[schemas.UserBasic]:
        sender_id = (meta_data or {}).get("senderId")
        try:
            sender_id = int(sender_id)
        except (TypeError, ValueError):
            return None
        if sender_id not in cache:
            user = await self.user_gateway.get_user(sender_id)
            cache[sender_id] = schemas.UserBasic.model_validate(user._model) if user else None
        return cache[sender_id]

    async def list_for_user(
        self, user_id: int, page: int = 1, page_size: int = 10
    ) -> schemas.NotificationPage:
        """Newest notifications first, each with the profile of its sender.

        The sender is taken from ``meta_data["senderId"]`` when present.
        """
        rows = await self.notification_gateway.get_page(
            user_id, skip=(page - 1) * page_size, take=page_size
        )
        total = await self.notification_gateway.count(user_id)
        unread_count = await self.notification_gateway.count(user_id, unread_only=True)

        senders: Dict[int, Optional[schemas.UserBasic]] = {}
        data: List[schemas.NotificationWithSender] = []
        for row in rows:
            item = schemas.NotificationWithSender.model_validate(row._model)
            item.sender = await self._resolve_sender(row.meta_data, senders)
            data.append(item)

        return schemas.NotificationPage(
            data=data,
            total=total,
            unread_count=unread_count,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if page_size else 0,
        )

    async def mark_as_read(
        self, notification_id: int, user_id: int
    ) -> Optional[schemas.Notification]:
        notification = await self.notification_gateway.mark_read(notification_id, user_id)
        return schemas.Notification.model_validate(notification._model) if notification else None

    async def mark_bulk_as_read(self, notification_ids: Sequence[int], user_id: int) -> int:
        return await self.notification_gateway.mark_bulk_read(notification_ids, user_id)
