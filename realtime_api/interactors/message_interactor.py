# realtime_api/interactors/message_interactor.py
import math
from collections import OrderedDict
from datetime import UTC, datetime
from typing import List, Optional

from realtime_api.gateways.interfaces import (
    IChatGateway,
    IDeliveryGateway,
    IMessageGateway,
)
from realtime_api.infrastructure import schemas
from realtime_api.infrastructure.realtime_dispatcher import RealtimeDispatcher
from realtime_api.infrastructure.uow import UnitOfWork


def _today() -> str:
    return datetime.now(UTC).date().isoformat()


class MessageInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        message_gateway: IMessageGateway,
        chat_gateway: IChatGateway,
        delivery_gateway: IDeliveryGateway,
        dispatcher: RealtimeDispatcher,
    ):
        self.uow = uow
        self.message_gateway = message_gateway
        self.chat_gateway = chat_gateway
        self.delivery_gateway = delivery_gateway
        self.dispatcher = dispatcher

    async def _snapshot(self, message_id: int) -> schemas.Message:
        message = await self.message_gateway.get_message(message_id)
        return schemas.Message.model_validate(message._model)

    async def send_message(
        self, chat_id: int, sender_id: int, content: schemas.MessageCreate
    ) -> Optional[schemas.Message]:
        """Store a message and push it to every other active member.

        Each recipient gets an untouched delivery row, committed before the
        message is dispatched, so a ``messageReceived`` sent back at once is
        tracked.
        """
        if not await self.chat_gateway.get_chat(chat_id):
            return None
        member = await self.chat_gateway.get_member(chat_id, sender_id)
        if not member or member.left_at is not None:
            return None

        message = await self.message_gateway.create_message(chat_id, sender_id, content)
        recipients = await self.chat_gateway.get_member_ids(
            chat_id, exclude_user_id=sender_id
        )
        await self.delivery_gateway.ensure_statuses(message.id, recipients)
        await self.chat_gateway.touch(chat_id, message.created_at)
        await self.uow.complete()

        snapshot = await self._snapshot(message.id)
        for recipient_id in recipients:
            await self.dispatcher.new_message(recipient_id, snapshot)
        return snapshot

    async def get_messages(
        self, chat_id: int, user_id: int, page: int = 1, limit: int = 20
    ) -> Optional[schemas.MessageHistory]:
        if not await self.chat_gateway.get_chat_for_member(chat_id, user_id):
            return None

        # scroll pagination: every page includes the ones before it
        messages = await self.message_gateway.get_recent(chat_id, page * limit)
        total = await self.message_gateway.count(chat_id)

        grouped: "OrderedDict[str, List[schemas.Message]]" = OrderedDict()
        grouped[_today()] = []
        for message in messages:
            snapshot = schemas.Message.model_validate(message._model)
            grouped.setdefault(snapshot.created_at.date().isoformat(), []).append(snapshot)

        return schemas.MessageHistory(
            data=[
                schemas.MessagesByDate(date=date, data=data)
                for date, data in sorted(grouped.items(), key=lambda item: item[0], reverse=True)
            ],
            chat_id=chat_id,
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    async def get_message_dates(self, chat_id: int, user_id: int) -> Optional[List[str]]:
        if not await self.chat_gateway.get_chat_for_member(chat_id, user_id):
            return None
        timestamps = await self.message_gateway.get_message_timestamps(chat_id)
        dates = {timestamp.date().isoformat() for timestamp in timestamps}
        dates.add(_today())
        return sorted(dates)

    async def _own_message(self, message_id: int, user_id: int):
        message = await self.message_gateway.get_message_for_member(message_id, user_id)
        if not message:
            return None
        if message.sender_id != user_id:
            raise PermissionError("Only the sender can change a message")
        return message

    async def update_message(
        self, message_id: int, message_update: schemas.MessageUpdate, user_id: int
    ) -> Optional[schemas.Message]:
        message = await self._own_message(message_id, user_id)
        if not message:
            return None
        updated = await self.message_gateway.update_message(message, message_update)
        await self.uow.complete()
        snapshot = schemas.Message.model_validate(updated._model)

        recipients = await self.chat_gateway.get_member_ids(
            snapshot.chat_id, exclude_user_id=user_id
        )
        for recipient_id in recipients:
            await self.dispatcher.message_updated(recipient_id, snapshot)
        return snapshot

    async def delete_message(self, message_id: int, user_id: int) -> bool:
        message = await self._own_message(message_id, user_id)
        if not message:
            return False
        await self.message_gateway.delete_message(message)
        return True

    async def add_reaction(
        self, message_id: int, user_id: int, reaction: schemas.ReactionCreate
    ) -> Optional[schemas.MessageReaction]:
        if not await self.message_gateway.get_message_for_member(message_id, user_id):
            return None
        new_reaction = await self.message_gateway.add_reaction(
            message_id, user_id, reaction.emoji
        )
        return schemas.MessageReaction.model_validate(new_reaction._model)

    async def remove_reaction(self, message_id: int, reaction_id: int, user_id: int) -> bool:
        if not await self.message_gateway.get_message_for_member(message_id, user_id):
            return False
        return await self.message_gateway.delete_reaction(message_id, reaction_id) is not None

    async def add_reply(
        self, message_id: int, user_id: int, reply: schemas.ReplyCreate
    ) -> Optional[schemas.MessageReply]:
        if not await self.message_gateway.get_message_for_member(message_id, user_id):
            return None
        if reply.reply_to_id is not None and not await self.message_gateway.get_reply(
            message_id, reply.reply_to_id
        ):
            raise ValueError("Replied-to reply does not belong to this message")
        new_reply = await self.message_gateway.add_reply(message_id, user_id, reply)
        return schemas.MessageReply.model_validate(new_reply._model)

    async def remove_reply(self, message_id: int, reply_id: int, user_id: int) -> bool:
        if not await self.message_gateway.get_message_for_member(message_id, user_id):
            return False
        return await self.message_gateway.delete_reply(message_id, reply_id) is not None
