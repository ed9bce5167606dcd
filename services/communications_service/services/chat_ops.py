"""Support chat operations: the conversation gate and message posting."""

from typing import Optional

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from libs.realtime.events import MESSAGES_TABLE
from libs.realtime.feed import ChangeFeed, change_feed
from services.communications_service.models import Conversation, Message
from services.communications_service.schemas import MessageResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MESSAGE_HISTORY_LIMIT = 200


async def get_conversation(db: AsyncSession, user_id: str) -> Optional[Conversation]:
    result = await db.execute(select(Conversation).where(Conversation.user_id == user_id))
    return result.scalar_one_or_none()


async def start_conversation(
    db: AsyncSession, *, user_id: str, started_by: str
) -> Conversation:
    """Open (or re-open) a customer's conversation so they can post."""
    conversation = await get_conversation(db, user_id)
    if conversation is None:
        conversation = Conversation(user_id=user_id)
        db.add(conversation)
    conversation.admin_started = True
    conversation.started_by = started_by
    await db.commit()
    await db.refresh(conversation)

    logger.info("Conversation with %s started by %s", user_id, started_by)
    return conversation


async def list_messages(
    db: AsyncSession,
    *,
    user_id: Optional[str] = None,
    limit: int = MESSAGE_HISTORY_LIMIT,
) -> list[Message]:
    """The most recent ``limit`` messages, oldest first."""
    query = select(Message).order_by(Message.created_at.desc()).limit(limit)
    if user_id is not None:
        query = query.where(Message.user_id == user_id)
    result = await db.execute(query)
    return list(reversed(result.scalars().all()))


async def post_message(
    db: AsyncSession,
    *,
    conversation_user_id: str,
    sender_id: str,
    content: str,
    sender_is_admin: bool = False,
    feed: ChangeFeed = change_feed,
) -> Message:
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Message cannot be empty"
        )

    if not sender_is_admin:
        conversation = await get_conversation(db, conversation_user_id)
        if conversation is None or not conversation.admin_started:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Chat opens once our team starts the conversation",
            )

    message = Message(user_id=conversation_user_id, sender_id=sender_id, content=content)
    db.add(message)
    await db.commit()
    await db.refresh(message)

    feed.publish_insert(
        MESSAGES_TABLE, MessageResponse.model_validate(message).model_dump(mode="json")
    )
    return message
