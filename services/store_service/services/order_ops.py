"""Core order operations: checkout writes, status lifecycle and dashboard queries.

Every committed change to an order is published on the realtime change feed
so that subscribed customer and admin views update without polling.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.pricing import delivery_fee, format_amount, line_total, quantize
from libs.orders.status import ACTIVE_ORDER_STATUSES, is_legal_transition, is_terminal
from libs.realtime.events import ORDERS_TABLE
from libs.realtime.feed import ChangeFeed, change_feed
from services.store_service.models import Order, OrderItem, OrderStatus, Product, Store
from services.store_service.schemas import (
    ActivityEntry,
    DashboardStats,
    OrderCreate,
    OrderItemCreate,
    OrderResponse,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

RECENT_PER_KIND = 5
RECENT_ACTIVITY_LIMIT = 6


def order_row(order: Order) -> dict:
    """JSON row shape published on the change feed."""
    return OrderResponse.model_validate(order).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Checkout writes
# ---------------------------------------------------------------------------


async def create_order(
    db: AsyncSession,
    *,
    user_id: str,
    data: OrderCreate,
    feed: ChangeFeed = change_feed,
) -> Order:
    """Insert a pending cash-on-delivery order (first checkout write)."""
    order = Order(
        user_id=user_id,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        delivery_address=data.delivery_address,
        special_instructions=data.special_instructions,
        subtotal=quantize(data.subtotal),
        delivery_fee=quantize(data.delivery_fee),
        total=quantize(data.total),
        status=OrderStatus.PENDING,
        payment_method=data.payment_method,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info(
        "Created order %s for user %s (total=%s)", order.id, user_id, order.total
    )
    feed.publish_insert(ORDERS_TABLE, order_row(order))
    return order


async def get_order(
    db: AsyncSession, order_id: uuid.UUID, *, with_items: bool = False
) -> Order:
    query = select(Order).where(Order.id == order_id)
    if with_items:
        query = query.options(selectinload(Order.items)).execution_options(
            populate_existing=True
        )
    result = await db.execute(query)
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


async def add_order_items(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    user_id: str,
    items: list[OrderItemCreate],
) -> list[OrderItem]:
    """Write the line items of a freshly created order (second checkout write).

    The lines must add up to the order's stored subtotal and delivery fee.
    """
    order = await get_order(db, order_id)
    if order.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your order")
    existing = await db.scalar(
        select(func.count(OrderItem.id)).where(OrderItem.order_id == order.id)
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Order already has items"
        )

    total_quantity = sum(item.quantity for item in items)
    subtotal = quantize(sum((line_total(i.product_price, i.quantity) for i in items), Decimal("0")))
    if subtotal != quantize(order.subtotal):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Items subtotal {subtotal} does not match order subtotal {order.subtotal}",
        )
    if delivery_fee(total_quantity) != quantize(order.delivery_fee):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Delivery fee for {total_quantity} items should be {delivery_fee(total_quantity)}",
        )

    rows = [
        OrderItem(
            order_id=order.id,
            product_id=item.product_id,
            product_name=item.product_name,
            product_price=quantize(item.product_price),
            quantity=item.quantity,
            store_id=item.store_id,
            store_name=item.store_name,
        )
        for item in items
    ]
    db.add_all(rows)
    await db.commit()

    logger.info("Added %d items to order %s", len(rows), order.id)
    return rows


# ---------------------------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------------------------


async def update_order_status(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    new_status: OrderStatus,
    performed_by: str,
    strict: Optional[bool] = None,
    feed: ChangeFeed = change_feed,
) -> tuple[Order, bool]:
    """Set an order's status. Returns ``(order, changed)``.

    Any transition is written unless ``strict`` (default:
    ``STRICT_ORDER_TRANSITIONS``) is on, in which case only successors in the
    delivery flow are accepted.
    """
    if strict is None:
        strict = get_settings().STRICT_ORDER_TRANSITIONS

    order = await get_order(db, order_id)
    current = order.status
    if current == new_status:
        return order, False

    if not is_legal_transition(current, new_status):
        if strict:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot move order from {current.value} to {new_status.value}",
            )
        logger.warning(
            "Out-of-sequence status change on order %s: %s -> %s by %s%s",
            order.id,
            current.value,
            new_status.value,
            performed_by,
            " (order was terminal)" if is_terminal(current) else "",
        )

    old_row = order_row(order)
    order.status = new_status
    await db.commit()
    await db.refresh(order)

    logger.info(
        "Order %s status %s -> %s by %s",
        order.id,
        current.value,
        new_status.value,
        performed_by,
    )
    feed.publish_update(ORDERS_TABLE, order_row(order), old_row)
    return order, True


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_orders(
    db: AsyncSession,
    *,
    user_id: Optional[str] = None,
    status_filter: Optional[OrderStatus] = None,
    search: Optional[str] = None,
    with_items: bool = False,
) -> list[Order]:
    """Orders newest first, optionally filtered by owner, status and a search
    term matched against customer name, phone and order id."""
    query = select(Order).order_by(Order.created_at.desc())
    if with_items:
        query = query.options(selectinload(Order.items)).execution_options(
            populate_existing=True
        )
    if user_id is not None:
        query = query.where(Order.user_id == user_id)
    if status_filter is not None:
        query = query.where(Order.status == status_filter)

    result = await db.execute(query)
    orders = list(result.scalars().all())

    term = (search or "").strip().lower()
    if term:
        orders = [
            o
            for o in orders
            if term in o.customer_name.lower()
            or term in o.customer_phone.lower()
            or term in str(o.id).lower()
        ]
    return orders


def _start_of_today_utc(tz_name: str) -> datetime:
    local_now = datetime.now(ZoneInfo(tz_name))
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(timezone.utc)


async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    """Counters and recent activity for the admin overview."""
    settings = get_settings()

    store_count = await db.scalar(select(func.count(Store.id)))
    product_count = await db.scalar(select(func.count(Product.id)))
    active_orders = await db.scalar(
        select(func.count(Order.id)).where(Order.status.in_(ACTIVE_ORDER_STATUSES))
    )

    revenue_rows = await db.execute(
        select(Order.total, Order.status).where(
            Order.created_at >= _start_of_today_utc(settings.TIMEZONE)
        )
    )
    todays_revenue = quantize(
        sum(
            (total or Decimal("0") for total, order_status in revenue_rows.all()
             if order_status != OrderStatus.CANCELLED),
            Decimal("0"),
        )
    )

    entries: list[ActivityEntry] = []
    stores = await db.execute(
        select(Store.name, Store.updated_at).order_by(Store.updated_at.desc()).limit(RECENT_PER_KIND)
    )
    for name, updated_at in stores.all():
        entries.append(ActivityEntry(kind="Store", title=f"{name} updated", timestamp=updated_at))

    products = await db.execute(
        select(Product.name, Product.updated_at)
        .order_by(Product.updated_at.desc())
        .limit(RECENT_PER_KIND)
    )
    for name, updated_at in products.all():
        entries.append(
            ActivityEntry(kind="Product", title=f"New/updated product: {name}", timestamp=updated_at)
        )

    orders = await db.execute(
        select(Order.customer_name, Order.total, Order.created_at)
        .order_by(Order.created_at.desc())
        .limit(RECENT_PER_KIND)
    )
    for customer_name, total, created_at in orders.all():
        entries.append(
            ActivityEntry(
                kind="Order",
                title=f"Order from {customer_name} • {format_amount(total or 0, settings.CURRENCY_SYMBOL)}",
                timestamp=created_at,
            )
        )

    entries.sort(key=lambda e: e.timestamp, reverse=True)

    return DashboardStats(
        store_count=store_count or 0,
        product_count=product_count or 0,
        active_orders=active_orders or 0,
        todays_revenue=todays_revenue,
        activity=entries[:RECENT_ACTIVITY_LIMIT],
    )
