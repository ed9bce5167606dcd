"""Admin order management: listing, status changes and dashboard stats."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import OrderStatus
from services.store_service.schemas import (
    DashboardStats,
    OrderResponse,
    OrderStatusUpdate,
    OrderWithItemsResponse,
)
from services.store_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.get("/orders", response_model=list[OrderWithItemsResponse])
async def list_all_orders(
    status: Optional[OrderStatus] = Query(None),
    search: Optional[str] = Query(None, description="Customer name, phone or order id"),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.list_orders(
        db, status_filter=status, search=search, with_items=True
    )


@router.get("/orders/{order_id}", response_model=OrderWithItemsResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.get_order(db, order_id, with_items=True)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: uuid.UUID,
    update: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Move an order to a new status and broadcast the change."""
    order, _ = await order_ops.update_order_status(
        db,
        order_id=order_id,
        new_status=update.status,
        performed_by=current_user.email or current_user.user_id,
    )
    return order


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.get_dashboard_stats(db)
