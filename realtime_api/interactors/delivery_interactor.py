# realtime_api/interactors/delivery_interactor.py
from datetime import UTC, datetime
from typing import List, Optional, Sequence

from realtime_api.gateways.interfaces import (
    IChatGateway,
    IDeliveryGateway,
    IMessageGateway,
)
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.uow import UnitOfWork


class DeliveryInteractor:
    """Per-recipient received/seen bookkeeping for chat messages."""

    def __init__(
        self,
        uow: UnitOfWork,
        delivery_gateway: IDeliveryGateway,
        message_gateway: IMessageGateway,
        chat_gateway: IChatGateway,
        dispatcher: RealtimeDispatcher,
    ):
        self.uow = uow
        self.delivery_gateway = delivery_gateway
        self.message_gateway = message_gateway
        self.chat_gateway = chat_gateway
        self.dispatcher = dispatcher

    async def ensure_tracked(self, message_id: int, recipient_ids: Sequence[int]) -> List[int]:
        return await self.delivery_gateway.ensure_statuses(message_id, recipient_ids)

    async def _snapshot(self, message_id: int) -> Optional[schemas.Message]:
        message = await self.message_gateway.get_message(message_id)
        return schemas.Message.model_validate(message._model) if message else None

    async def _notify_others(self, snapshot: schemas.Message, acting_user_id: int, seen: bool) -> None:
        recipients = await self.chat_gateway.get_member_ids(
            snapshot.chat_id, exclude_user_id=acting_user_id
        )
        for recipient_id in recipients:
            if seen:
                await self.dispatcher.message_seen(recipient_id, snapshot)
            else:
                await self.dispatcher.message_received(recipient_id, snapshot)

    async def mark_received(self, user_id: int, message_id: int) -> Optional[schemas.Message]:
        """Stamp ``received_at`` the first time a recipient gets a message.

        Untracked pairs and repeat calls are no-ops and return ``None``.
        """
        status = await self.delivery_gateway.get_status(message_id, user_id)
        if not status or status.received_at is not None:
            return None

        status.received_at = datetime.now(UTC)
        await self.uow.complete()

        snapshot = await self._snapshot(message_id)
        if snapshot:
            await self._notify_others(snapshot, user_id, seen=False)
        return snapshot

    async def mark_seen(self, user_id: int, message_id: int) -> Optional[schemas.Message]:
        message = await self.message_gateway.get_message_for_member(message_id, user_id)
        if not message:
            return None

        now = datetime.now(UTC)
        status = await self.delivery_gateway.get_status(message_id, user_id)
        if status:
            status.received_at = now
            status.seen_at = now
        else:
            await self.delivery_gateway.create_status(
                message_id, user_id, received_at=now, seen_at=now
            )
        await self.uow.complete()

        snapshot = await self._snapshot(message_id)
        await self._notify_others(snapshot, user_id, seen=True)
        return snapshot

    async def update_status(
        self,
        status_id: int,
        status_update: schemas.MessageStatusUpdate,
        acting_user_id: int,
    ) -> Optional[schemas.Message]:
        status = await self.delivery_gateway.get_status_by_id(status_id)
        # a status row is only editable by the recipient it belongs to
        if not status or status.user_id != acting_user_id:
            return None

        changes = status_update.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return await self._snapshot(status.message_id)

        for key, value in changes.items():
            setattr(status, key, value)
        if status.seen_at is not None and status.received_at is None:
            status.received_at = status.seen_at

        message = await self.message_gateway.get_message(status.message_id)
        if status.seen_at is not None:
            member = await self.chat_gateway.get_member(message.chat_id, acting_user_id)
            if member:
                member.last_read_message_id = status.message_id
        await self.uow.complete()

        snapshot = schemas.Message.model_validate(message._model)
        await self._notify_others(snapshot, acting_user_id, seen=True)
        return snapshot

    async def count_unseen_by_sender(self, chat_id: int, viewer_id: int) -> List[schemas.UnseenCount]:
        counts = await self.delivery_gateway.count_unseen_by_sender(chat_id, viewer_id)
        return [schemas.UnseenCount.model_validate(count) for count in counts]

    async def get_undelivered_messages(self, user_id: int) -> List[schemas.Message]:
        messages = await self.delivery_gateway.get_undelivered_messages(user_id)
        return [schemas.Message.model_validate(message._model) for message in messages]
