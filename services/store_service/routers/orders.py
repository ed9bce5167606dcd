"""Store orders router: checkout writes and the customer's order history."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import get_current_user, is_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.schemas import (
    OrderCreate,
    OrderItemResponse,
    OrderItemsCreate,
    OrderResponse,
    OrderWithItemsResponse,
)
from services.store_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    order_in: OrderCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a pending cash-on-delivery order for the current user."""
    return await order_ops.create_order(db, user_id=current_user.user_id, data=order_in)


@router.post(
    "/orders/{order_id}/items",
    response_model=list[OrderItemResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_items(
    order_id: uuid.UUID,
    items_in: OrderItemsCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Attach the cart lines to an order created by the same user."""
    return await order_ops.add_order_items(
        db, order_id=order_id, user_id=current_user.user_id, items=items_in.items
    )


# ============================================================================
# ORDER HISTORY
# ============================================================================


@router.get("/orders", response_model=list[OrderWithItemsResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """The current user's orders, newest first, with their items."""
    return await order_ops.list_orders(db, user_id=current_user.user_id, with_items=True)


@router.get("/orders/{order_id}", response_model=OrderWithItemsResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    order = await order_ops.get_order(db, order_id, with_items=True)
    # Other users' orders are reported as missing
    if order.user_id != current_user.user_id and not is_admin(current_user):
        raise HTTPException(status_code=404, detail="Order not found")
    return order
