import json
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def chat_id(client: AsyncClient, auth_header, test_user2):
    response = await client.post(
        "/api/v1/chats/",
        headers=auth_header,
        json={"type": "PRIVATE", "user_ids": [test_user2.id]},
    )
    return response.json()["id"]


async def post_message(client: AsyncClient, headers, chat_id, text="Hello, World!"):
    return await client.post(
        f"/api/v1/chats/{chat_id}/messages", headers=headers, json={"text": text}
    )


async def test_create_message(client: AsyncClient, auth_header, chat_id, test_user, test_user2):
    response = await post_message(client, auth_header, chat_id)
    assert response.status_code == 201
    data = response.json()
    assert data["text"] == "Hello, World!"
    assert data["chat_id"] == chat_id
    assert data["sender"]["id"] == test_user.id
    assert data["message_type"] == "TEXT"
    assert [s["user_id"] for s in data["statuses"]] == [test_user2.id]
    assert data["statuses"][0]["received_at"] is None


async def test_create_message_pushes_to_recipient(
    client: AsyncClient, application, auth_header, chat_id, test_user2
):
    websocket = AsyncMock()
    await application.registry.join_user(test_user2.id, websocket)

    response = await post_message(client, auth_header, chat_id, "Are you free Monday?")

    frame = json.loads(websocket.send_text.await_args.args[0])
    assert frame["event"] == "newMessage"
    assert frame["data"]["id"] == response.json()["id"]
    assert frame["data"]["text"] == "Are you free Monday?"


async def test_create_message_in_foreign_chat(client: AsyncClient, auth_header3, chat_id):
    response = await post_message(client, auth_header3, chat_id)
    assert response.status_code == 404


async def test_read_messages(client: AsyncClient, auth_header, auth_header2, chat_id):
    for i in range(5):
        await post_message(client, auth_header, chat_id, f"Message {i}")

    response = await client.get(
        f"/api/v1/chats/{chat_id}/messages?page=1&limit=3", headers=auth_header2
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 5
    assert data["total_pages"] == 2
    assert len(data["data"]) == 1
    assert [m["text"] for m in data["data"][0]["data"]] == ["Message 4", "Message 3", "Message 2"]


async def test_read_messages_of_foreign_chat(client: AsyncClient, auth_header3, chat_id):
    response = await client.get(f"/api/v1/chats/{chat_id}/messages", headers=auth_header3)
    assert response.status_code == 404


async def test_message_dates(client: AsyncClient, auth_header, chat_id):
    await post_message(client, auth_header, chat_id)

    response = await client.get(f"/api/v1/chats/{chat_id}/message-dates", headers=auth_header)
    assert response.status_code == 200
    assert len(response.json()) == 1


async def test_update_message(client: AsyncClient, auth_header, auth_header2, chat_id):
    message_id = (await post_message(client, auth_header, chat_id)).json()["id"]

    response = await client.patch(
        f"/api/v1/chats/messages/{message_id}", headers=auth_header, json={"text": "Updated"}
    )
    assert response.status_code == 200
    assert response.json()["text"] == "Updated"
    assert response.json()["updated_at"] is not None

    response = await client.patch(
        f"/api/v1/chats/messages/{message_id}", headers=auth_header2, json={"text": "Mine"}
    )
    assert response.status_code == 403


async def test_delete_message(client: AsyncClient, auth_header, auth_header2, chat_id):
    message_id = (await post_message(client, auth_header, chat_id)).json()["id"]

    response = await client.delete(f"/api/v1/chats/messages/{message_id}", headers=auth_header2)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/chats/messages/{message_id}", headers=auth_header)
    assert response.status_code == 204

    response = await client.delete(f"/api/v1/chats/messages/{message_id}", headers=auth_header)
    assert response.status_code == 404


async def test_mark_seen_and_unseen_counts(
    client: AsyncClient, auth_header, auth_header2, chat_id, test_user, test_user2
):
    message_id = (await post_message(client, auth_header, chat_id)).json()["id"]

    response = await client.get("/api/v1/chats/unread-messages", headers=auth_header2)
    assert [m["id"] for m in response.json()] == [message_id]

    message = (await client.get(f"/api/v1/chats/{chat_id}/messages", headers=auth_header2)).json()
    status_id = message["data"][0]["data"][0]["statuses"][0]["id"]
    response = await client.patch(
        f"/api/v1/chats/messages/statuses/{status_id}",
        headers=auth_header2,
        json={"received_at": "2024-06-01T10:00:00Z"},
    )
    assert response.status_code == 200

    response = await client.get("/api/v1/chats/unread-messages", headers=auth_header2)
    assert response.json() == []
    response = await client.get(f"/api/v1/chats/{chat_id}/unseen-counts", headers=auth_header2)
    assert response.json() == [{"sender_id": test_user.id, "count": 1}]

    response = await client.post(
        f"/api/v1/chats/messages/{message_id}/seen", headers=auth_header2
    )
    assert response.status_code == 200
    assert response.json()["statuses"][0]["seen_at"] is not None

    response = await client.get(f"/api/v1/chats/{chat_id}/unseen-counts", headers=auth_header2)
    assert response.json() == []


async def test_update_foreign_status(client: AsyncClient, auth_header, auth_header2, chat_id):
    await post_message(client, auth_header, chat_id)
    message = (await client.get(f"/api/v1/chats/{chat_id}/messages", headers=auth_header2)).json()
    status_id = message["data"][0]["data"][0]["statuses"][0]["id"]

    response = await client.patch(
        f"/api/v1/chats/messages/statuses/{status_id}",
        headers=auth_header,
        json={"seen_at": "2024-06-01T10:00:00Z"},
    )
    assert response.status_code == 404

    response = await client.patch(
        f"/api/v1/chats/messages/statuses/{status_id}", headers=auth_header2, json={}
    )
    assert response.status_code == 422


async def test_reactions_and_replies(client: AsyncClient, auth_header, auth_header2, chat_id):
    message_id = (await post_message(client, auth_header, chat_id)).json()["id"]

    response = await client.post(
        f"/api/v1/chats/messages/{message_id}/reactions", headers=auth_header2, json={"emoji": "👍"}
    )
    assert response.status_code == 201
    reaction_id = response.json()["id"]

    response = await client.post(
        f"/api/v1/chats/messages/{message_id}/replies",
        headers=auth_header2,
        json={"text": "Works for me"},
    )
    assert response.status_code == 201
    reply_id = response.json()["id"]

    response = await client.post(
        f"/api/v1/chats/messages/{message_id}/replies",
        headers=auth_header,
        json={"text": "?", "reply_to_id": 4242},
    )
    assert response.status_code == 400

    response = await client.delete(
        f"/api/v1/chats/messages/{message_id}/reactions/{reaction_id}", headers=auth_header2
    )
    assert response.status_code == 204
    response = await client.delete(
        f"/api/v1/chats/messages/{message_id}/replies/{reply_id}", headers=auth_header2
    )
    assert response.status_code == 204
    response = await client.delete(
        f"/api/v1/chats/messages/{message_id}/replies/{reply_id}", headers=auth_header2
    )
    assert response.status_code == 404
