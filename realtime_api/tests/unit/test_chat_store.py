# realtime_api/tests/unit/test_chat_store.py
from unittest.mock import AsyncMock, patch

import pytest

from realtime_api.domain.entities import ChatKind, ChatRole
from realtime_api.infrastructure import schemas


def private_with(*user_ids):
    return schemas.ChatCreate(type=ChatKind.PRIVATE, user_ids=list(user_ids))


def group_with(*user_ids, name="Design team"):
    return schemas.ChatCreate(
        type=ChatKind.GROUP,
        user_ids=list(user_ids),
        group_name=name,
        group_icon="https://cdn.example.com/icon.png",
        group_description="Weekly sync",
    )


async def test_private_chat_is_deduplicated(chat_interactor, test_user, test_user2, dispatcher):
    first, created = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)
    assert created

    again, created_again = await chat_interactor.create_chat(
        private_with(test_user.id), test_user2.id
    )

    assert not created_again
    assert again.id == first.id
    # only the first creation is announced
    dispatcher.new_chat.assert_awaited_once()
    assert dispatcher.new_chat.await_args.args[0] == test_user2.id


async def test_private_chat_roles_and_members(chat_interactor, test_user, test_user2):
    chat, _ = await chat_interactor.create_chat(
        private_with(test_user2.id, test_user2.id, test_user.id), test_user.id
    )

    roles = {member.user_id: member.role for member in chat.members}
    assert roles == {test_user.id: ChatRole.ADMIN, test_user2.id: ChatRole.MEMBER}
    assert chat.group is None
    assert all(member.left_at is None for member in chat.members)


async def test_private_chat_needs_exactly_two_members(
    chat_interactor, test_user, test_user2, test_user3
):
    with pytest.raises(ValueError):
        await chat_interactor.create_chat(private_with(test_user.id), test_user.id)
    with pytest.raises(ValueError):
        await chat_interactor.create_chat(
            private_with(test_user2.id, test_user3.id), test_user.id
        )


async def test_unknown_member_is_rejected(chat_interactor, test_user):
    with pytest.raises(LookupError):
        await chat_interactor.create_chat(private_with(424242), test_user.id)


async def test_group_chat_is_always_new(
    chat_interactor, test_user, test_user2, test_user3, dispatcher
):
    first, _ = await chat_interactor.create_chat(
        group_with(test_user2.id, test_user3.id), test_user.id
    )
    second, created = await chat_interactor.create_chat(
        group_with(test_user2.id, test_user3.id), test_user.id
    )

    assert created
    assert first.id != second.id
    assert first.group.name == "Design team"
    assert first.group.description == "Weekly sync"
    notified = [call.args[0] for call in dispatcher.new_chat.await_args_list]
    assert sorted(notified) == sorted([test_user2.id, test_user3.id] * 2)


async def test_deleted_private_chat_is_not_reused(
    chat_interactor, test_user, test_user2
):
    chat, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)
    assert await chat_interactor.delete_chat(chat.id, test_user.id)

    fresh, created = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)

    assert created
    assert fresh.id != chat.id
    assert await chat_interactor.get_chat(chat.id, test_user.id) is None


async def test_concurrent_duplicates_are_tolerated(
    chat_interactor, chat_gateway, test_user, test_user2
):
    # both requests looked the pair up before either inserted
    with patch.object(chat_gateway, "find_private_chat", AsyncMock(return_value=None)):
        first, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)
        second, _ = await chat_interactor.create_chat(private_with(test_user.id), test_user2.id)
    assert first.id != second.id

    page = await chat_interactor.get_chats(test_user.id)
    assert {chat.id for chat in page.data} == {first.id, second.id}

    # later lookups settle on the oldest duplicate
    chosen, created = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)
    assert not created
    assert chosen.id == first.id


async def test_fan_out_rows_only_for_other_members(
    chat_interactor, message_interactor, delivery_gateway, test_user, test_user2, test_user3, dispatcher
):
    chat, _ = await chat_interactor.create_chat(
        group_with(test_user2.id, test_user3.id), test_user.id
    )

    message = await message_interactor.send_message(
        chat.id, test_user2.id, schemas.MessageCreate(text="hello all")
    )

    tracked = sorted(status.user_id for status in message.statuses)
    assert tracked == sorted([test_user.id, test_user3.id])
    assert await delivery_gateway.get_status(message.id, test_user2.id) is None
    recipients = sorted(call.args[0] for call in dispatcher.new_message.await_args_list)
    assert recipients == sorted([test_user.id, test_user3.id])


async def test_get_chats_summaries(
    chat_interactor, message_interactor, delivery_interactor, test_user, test_user2, test_user3
):
    private, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)
    group, _ = await chat_interactor.create_chat(
        group_with(test_user2.id, test_user3.id, name="Recruiters"), test_user.id
    )
    texts = ["one", "two", "three"]
    for text in texts:
        message = await message_interactor.send_message(
            private.id, test_user2.id, schemas.MessageCreate(text=text)
        )
        await delivery_interactor.mark_received(test_user.id, message.id)

    page = await chat_interactor.get_chats(test_user.id, page=1, limit=10)

    assert page.total == 2
    assert page.total_pages == 1
    # the chat with the latest activity comes first
    assert [chat.id for chat in page.data] == [private.id, group.id]
    summary = page.data[0]
    assert [m.text for m in summary.last_messages] == ["three", "two"]
    assert [(c.sender_id, c.count) for c in summary.unseen_message_counts] == [
        (test_user2.id, 3)
    ]
    assert page.data[1].last_messages == []
    assert [g.name for g in page.groups] == ["Recruiters"]
    assert len(page.members) == 5
    assert len(page.messages) == 2


async def test_get_chats_search(chat_interactor, test_user, test_user2, test_user3):
    private, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)
    group, _ = await chat_interactor.create_chat(
        group_with(test_user3.id, name="Backend Guild"), test_user.id
    )

    by_name = await chat_interactor.get_chats(test_user.id, search="bob")
    by_last_name = await chat_interactor.get_chats(test_user.id, search="BAK")
    by_group = await chat_interactor.get_chats(test_user.id, search="guild")
    own_name = await chat_interactor.get_chats(test_user.id, search="alice")

    assert [c.id for c in by_name.data] == [private.id]
    assert [c.id for c in by_last_name.data] == [private.id]
    assert [c.id for c in by_group.data] == [group.id]
    assert own_name.data == []


async def test_get_chats_pagination(chat_interactor, test_user, test_user2):
    for _ in range(3):
        await chat_interactor.create_chat(group_with(test_user2.id), test_user.id)

    page = await chat_interactor.get_chats(test_user.id, page=2, limit=2)

    assert page.total == 3
    assert page.total_pages == 2
    assert len(page.data) == 1


async def test_update_group_requires_admin(chat_interactor, test_user, test_user2):
    chat, _ = await chat_interactor.create_chat(group_with(test_user2.id), test_user.id)

    updated = await chat_interactor.update_group(
        chat.id, schemas.ChatGroupUpdate(name="Renamed"), test_user.id
    )
    assert updated.group.name == "Renamed"
    assert updated.group.description == "Weekly sync"

    with pytest.raises(PermissionError):
        await chat_interactor.update_group(
            chat.id, schemas.ChatGroupUpdate(name="Mine now"), test_user2.id
        )
    with pytest.raises(PermissionError):
        await chat_interactor.delete_chat(chat.id, test_user2.id)


async def test_update_group_rejects_private_chat(chat_interactor, test_user, test_user2):
    chat, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)

    with pytest.raises(ValueError):
        await chat_interactor.update_group(
            chat.id, schemas.ChatGroupUpdate(name="Nope"), test_user.id
        )


async def test_outsider_cannot_see_chat(chat_interactor, test_user, test_user2, test_user3):
    chat, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)

    assert await chat_interactor.get_chat(chat.id, test_user3.id) is None
    assert await chat_interactor.update_group(
        chat.id, schemas.ChatGroupUpdate(name="x"), test_user3.id
    ) is None


async def test_leave_and_rejoin_flip_the_same_row(
    chat_interactor, message_interactor, test_user, test_user2, test_user3, dispatcher
):
    chat, _ = await chat_interactor.create_chat(
        group_with(test_user2.id, test_user3.id), test_user.id
    )

    left = await chat_interactor.user_left(chat.id, test_user3.id)
    assert left.left_at is not None

    dispatcher.reset_mock()
    message = await message_interactor.send_message(
        chat.id, test_user.id, schemas.MessageCreate(text="who is here?")
    )
    assert [s.user_id for s in message.statuses] == [test_user2.id]
    # a member who left cannot post
    assert await message_interactor.send_message(
        chat.id, test_user3.id, schemas.MessageCreate(text="hello?")
    ) is None

    joined = await chat_interactor.user_joined(chat.id, test_user3.id)
    assert joined.left_at is None
    chat_now = await chat_interactor.get_chat(chat.id, test_user.id)
    assert len(chat_now.members) == 3


async def test_membership_toggle_for_non_member(chat_interactor, test_user, test_user2, test_user3):
    chat, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)

    assert await chat_interactor.user_joined(chat.id, test_user3.id) is None
    assert await chat_interactor.user_left(9999, test_user.id) is None


async def test_blocks(chat_interactor, test_user, test_user2, test_user3):
    chat, _ = await chat_interactor.create_chat(private_with(test_user2.id), test_user.id)

    block = await chat_interactor.block_user(chat.id, test_user.id, test_user2.id)
    assert block.blocked_by == test_user.id
    assert block.blocked_to == test_user2.id
    assert [b.id for b in await chat_interactor.get_blocks(chat.id, test_user.id)] == [block.id]
    assert await chat_interactor.get_blocks(chat.id, test_user2.id) == []

    # only the blocker can lift a block
    assert not await chat_interactor.unblock_user(chat.id, block.id, test_user2.id)
    assert await chat_interactor.unblock_user(chat.id, block.id, test_user.id)
    assert await chat_interactor.get_blocks(chat.id, test_user.id) == []

    with pytest.raises(ValueError):
        await chat_interactor.block_user(chat.id, test_user.id, test_user.id)
    with pytest.raises(ValueError):
        await chat_interactor.block_user(chat.id, test_user.id, test_user3.id)
    assert await chat_interactor.block_user(chat.id, test_user3.id, test_user.id) is None
