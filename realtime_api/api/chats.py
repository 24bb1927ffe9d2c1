# realtime_api/api/chats.py

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from realtime_api.api.dependencies import (
    get_chat_interactor,
    get_config,
    get_current_user,
    get_delivery_interactor,
    get_message_interactor,
)
from realtime_api.config import AppConfig
from realtime_api.infrastructure import schemas
from realtime_api.interactors.chat_interactor import ChatInteractor
from realtime_api.interactors.delivery_interactor import DeliveryInteractor
from realtime_api.interactors.message_interactor import MessageInteractor

router = APIRouter()

CHAT_NOT_FOUND = "Chat not found"
MESSAGE_NOT_FOUND = "Message not found"


@router.get("/", response_model=schemas.ChatPage)
async def read_chats(
    search: str | None = Query(None, description="Group name or member name"),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=100),
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
    config: AppConfig = Depends(get_config),
):
    return await chat_interactor.get_chats(
        current_user.id, search=search, page=page, limit=limit or config.CHAT_PAGE_SIZE
    )


@router.post("/", response_model=schemas.Chat, status_code=status.HTTP_201_CREATED)
async def create_chat(
    chat: schemas.ChatCreate,
    response: Response,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    try:
        result, created = await chat_interactor.create_chat(chat, current_user.id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not created:
        response.status_code = status.HTTP_200_OK
    return result


@router.get("/unread-messages", response_model=list[schemas.Message])
async def read_undelivered_messages(
    delivery_interactor: DeliveryInteractor = Depends(get_delivery_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await delivery_interactor.get_undelivered_messages(current_user.id)


@router.patch("/messages/statuses/{status_id}", response_model=schemas.Message)
async def update_message_status(
    status_id: int,
    status_update: schemas.MessageStatusUpdate,
    delivery_interactor: DeliveryInteractor = Depends(get_delivery_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    message = await delivery_interactor.update_status(
        status_id, status_update, current_user.id
    )
    if not message:
        raise HTTPException(status_code=404, detail="Message status not found")
    return message


@router.post("/messages/{message_id}/seen", response_model=schemas.Message)
async def mark_message_seen(
    message_id: int,
    delivery_interactor: DeliveryInteractor = Depends(get_delivery_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    message = await delivery_interactor.mark_seen(current_user.id, message_id)
    if not message:
        raise HTTPException(status_code=404, detail=MESSAGE_NOT_FOUND)
    return message


@router.patch("/messages/{message_id}", response_model=schemas.Message)
async def update_message(
    message_id: int,
    message_update: schemas.MessageUpdate,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    try:
        message = await message_interactor.update_message(
            message_id, message_update, current_user.id
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if not message:
        raise HTTPException(status_code=404, detail=MESSAGE_NOT_FOUND)
    return message


@router.delete("/messages/{message_id}", status_code=204)
async def delete_message(
    message_id: int,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    try:
        deleted = await message_interactor.delete_message(message_id, current_user.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail=MESSAGE_NOT_FOUND)


@router.post(
    "/messages/{message_id}/reactions",
    response_model=schemas.MessageReaction,
    status_code=status.HTTP_201_CREATED,
)
async def add_reaction(
    message_id: int,
    reaction: schemas.ReactionCreate,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    new_reaction = await message_interactor.add_reaction(
        message_id, current_user.id, reaction
    )
    if not new_reaction:
        raise HTTPException(status_code=404, detail=MESSAGE_NOT_FOUND)
    return new_reaction


@router.delete("/messages/{message_id}/reactions/{reaction_id}", status_code=204)
async def remove_reaction(
    message_id: int,
    reaction_id: int,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    if not await message_interactor.remove_reaction(
        message_id, reaction_id, current_user.id
    ):
        raise HTTPException(status_code=404, detail="Reaction not found")


@router.post(
    "/messages/{message_id}/replies",
    response_model=schemas.MessageReply,
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(
    message_id: int,
    reply: schemas.ReplyCreate,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    try:
        new_reply = await message_interactor.add_reply(message_id, current_user.id, reply)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not new_reply:
        raise HTTPException(status_code=404, detail=MESSAGE_NOT_FOUND)
    return new_reply


@router.delete("/messages/{message_id}/replies/{reply_id}", status_code=204)
async def remove_reply(
    message_id: int,
    reply_id: int,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    if not await message_interactor.remove_reply(message_id, reply_id, current_user.id):
        raise HTTPException(status_code=404, detail="Reply not found")


@router.get("/{chat_id}", response_model=schemas.Chat)
async def read_chat(
    chat_id: int,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    chat = await chat_interactor.get_chat(chat_id, current_user.id)
    if not chat:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return chat


@router.patch("/{chat_id}/group", response_model=schemas.Chat)
async def update_group(
    chat_id: int,
    group_update: schemas.ChatGroupUpdate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    try:
        chat = await chat_interactor.update_group(chat_id, group_update, current_user.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not chat:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return chat


@router.delete("/{chat_id}", status_code=204)
async def delete_chat(
    chat_id: int,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    try:
        deleted = await chat_interactor.delete_chat(chat_id, current_user.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)


@router.post("/{chat_id}/join", response_model=schemas.ChatMember)
async def join_chat(
    chat_id: int,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    member = await chat_interactor.user_joined(chat_id, current_user.id)
    if not member:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return member


@router.post("/{chat_id}/leave", response_model=schemas.ChatMember)
async def leave_chat(
    chat_id: int,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    member = await chat_interactor.user_left(chat_id, current_user.id)
    if not member:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return member


@router.get("/{chat_id}/messages", response_model=schemas.MessageHistory)
async def read_messages(
    chat_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    history = await message_interactor.get_messages(
        chat_id, current_user.id, page=page, limit=limit
    )
    if history is None:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return history


@router.post(
    "/{chat_id}/messages",
    response_model=schemas.Message,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    chat_id: int,
    message: schemas.MessageCreate,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    new_message = await message_interactor.send_message(chat_id, current_user.id, message)
    if not new_message:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return new_message


@router.get("/{chat_id}/message-dates", response_model=list[str])
async def read_message_dates(
    chat_id: int,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    dates = await message_interactor.get_message_dates(chat_id, current_user.id)
    if dates is None:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return dates


@router.get("/{chat_id}/unseen-counts", response_model=list[schemas.UnseenCount])
async def read_unseen_counts(
    chat_id: int,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    delivery_interactor: DeliveryInteractor = Depends(get_delivery_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    if not await chat_interactor.get_chat(chat_id, current_user.id):
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return await delivery_interactor.count_unseen_by_sender(chat_id, current_user.id)


@router.get("/{chat_id}/blocks", response_model=list[schemas.ChatBlock])
async def read_blocks(
    chat_id: int,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    blocks = await chat_interactor.get_blocks(chat_id, current_user.id)
    if blocks is None:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return blocks


@router.post(
    "/{chat_id}/blocks",
    response_model=schemas.ChatBlock,
    status_code=status.HTTP_201_CREATED,
)
async def block_user(
    chat_id: int,
    block: schemas.ChatBlockCreate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    try:
        new_block = await chat_interactor.block_user(
            chat_id, current_user.id, block.blocked_to
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not new_block:
        raise HTTPException(status_code=404, detail=CHAT_NOT_FOUND)
    return new_block


@router.delete("/{chat_id}/blocks/{block_id}", status_code=204)
async def unblock_user(
    chat_id: int,
    block_id: int,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    if not await chat_interactor.unblock_user(chat_id, block_id, current_user.id):
        raise HTTPException(status_code=404, detail="Block not found")
