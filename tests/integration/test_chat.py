"""Integration tests for the support chat and its conversation gate."""

from datetime import datetime, timedelta, timezone

import pytest
from libs.realtime.feed import change_feed
from tests.factories import ConversationFactory, MessageFactory


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_cannot_post_before_admin_starts(communications_client):
    response = await communications_client.get("/chat/conversation")
    assert response.status_code == 200
    assert response.json()["can_send"] is False

    response = await communications_client.post("/chat/messages", json={"content": "Hello?"})
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_start_unlocks_posting(
    communications_client, admin_communications_client, customer_user
):
    response = await admin_communications_client.post(
        f"/admin/chat/conversations/{customer_user.user_id}/start"
    )
    assert response.status_code == 200
    assert response.json()["admin_started"] is True

    # Starting twice keeps a single conversation
    response = await admin_communications_client.post(
        f"/admin/chat/conversations/{customer_user.user_id}/start"
    )
    assert response.status_code == 200

    subscription = change_feed.subscribe(["messages"])
    response = await communications_client.post(
        "/chat/messages", json={"content": "  Where is my order?  "}
    )

    assert response.status_code == 201
    assert response.json()["content"] == "Where is my order?"
    payload = await subscription.get()
    assert payload.new["user_id"] == customer_user.user_id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_blank_message_rejected(communications_client, db_session, customer_user):
    db_session.add(ConversationFactory.create(user_id=customer_user.user_id))
    await db_session.commit()

    response = await communications_client.post("/chat/messages", json={"content": "   "})

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_can_always_post_into_a_thread(admin_communications_client, customer_user):
    response = await admin_communications_client.post(
        "/chat/messages",
        json={"content": "Your rider is outside", "user_id": customer_user.user_id},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == customer_user.user_id
    assert data["sender_id"] != customer_user.user_id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customers_only_see_their_thread_oldest_first(
    communications_client, admin_communications_client, db_session, customer_user
):
    now = datetime.now(timezone.utc)
    db_session.add_all(
        [
            MessageFactory.create(
                user_id=customer_user.user_id, content="second", created_at=now
            ),
            MessageFactory.create(
                user_id=customer_user.user_id,
                content="first",
                created_at=now - timedelta(minutes=5),
            ),
            MessageFactory.create(user_id="someone-else", content="not yours"),
        ]
    )
    await db_session.commit()

    response = await communications_client.get("/chat/messages")
    assert [m["content"] for m in response.json()] == ["first", "second"]

    response = await admin_communications_client.get("/chat/messages")
    assert len(response.json()) == 3


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customers_cannot_start_conversations(communications_client):
    response = await communications_client.post("/admin/chat/conversations/abc/start")
    assert response.status_code == 403
