"""Admin controls for customer conversations."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.communications_service.schemas import ConversationResponse
from services.communications_service.services import chat_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/chat", tags=["admin-chat"])


@router.post("/conversations/{user_id}/start", response_model=ConversationResponse)
async def start_conversation(
    user_id: str,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Unlock sending for a customer (idempotent)."""
    return await chat_ops.start_conversation(
        db, user_id=user_id, started_by=current_user.email or current_user.user_id
    )
