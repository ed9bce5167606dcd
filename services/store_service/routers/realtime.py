"""Realtime order changes over server-sent events."""

from fastapi import APIRouter, Depends, Request
from libs.auth.dependencies import get_current_user, is_admin
from libs.auth.models import AuthUser
from libs.realtime.events import ORDERS_TABLE, ChangePayload
from libs.realtime.feed import change_feed
from libs.realtime.sse import change_stream_response

router = APIRouter(tags=["realtime"])


@router.get("/realtime")
async def stream_order_changes(
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
):
    """Admins receive every order change; customers only their own."""
    if is_admin(current_user):
        return change_stream_response(request, change_feed, [ORDERS_TABLE])

    def own_rows(payload: ChangePayload) -> bool:
        return str(payload.new.get("user_id")) == current_user.user_id

    return change_stream_response(request, change_feed, [ORDERS_TABLE], own_rows)
