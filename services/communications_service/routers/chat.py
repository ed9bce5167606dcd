"""Customer support chat router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from libs.auth.dependencies import get_current_user, is_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from libs.realtime.events import MESSAGES_TABLE, ChangePayload
from libs.realtime.feed import change_feed
from libs.realtime.sse import change_stream_response
from services.communications_service.schemas import (
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from services.communications_service.services import chat_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/messages", response_model=list[MessageResponse])
async def list_messages(
    user_id: Optional[str] = Query(None, description="Admin only: one customer's thread"),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Recent messages, oldest first. Customers only see their own thread."""
    if not is_admin(current_user):
        user_id = current_user.user_id
    return await chat_ops.list_messages(db, user_id=user_id)


@router.get("/conversation", response_model=ConversationResponse)
async def get_my_conversation(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    conversation = await chat_ops.get_conversation(db, current_user.user_id)
    if conversation is None:
        return ConversationResponse(user_id=current_user.user_id)
    return conversation


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_in: MessageCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    admin = is_admin(current_user)
    target = message_in.user_id if admin and message_in.user_id else current_user.user_id
    return await chat_ops.post_message(
        db,
        conversation_user_id=target,
        sender_id=current_user.user_id,
        content=message_in.content,
        sender_is_admin=admin,
    )


@router.get("/realtime")
async def stream_messages(
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
):
    """New messages as server-sent events."""
    if is_admin(current_user):
        return change_stream_response(request, change_feed, [MESSAGES_TABLE])

    def own_thread(payload: ChangePayload) -> bool:
        return payload.new.get("user_id") == current_user.user_id

    return change_stream_response(request, change_feed, [MESSAGES_TABLE], own_thread)
