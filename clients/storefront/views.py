"""
Client-side view state kept current by the realtime bridge.

Each view applies typed change events through ``handle`` and can re-fetch its
state from the services with ``refresh``, which the bridge's polling loop
uses as a backstop when the push channel goes quiet.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional, Protocol

from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.pricing import format_amount, quantize
from libs.orders.status import STATUS_LABELS, OrderStatus, is_active
from libs.realtime.events import (
    ChangeEvent,
    MessageInserted,
    MessageRecord,
    OrderInserted,
    OrderRecord,
    OrderUpdated,
)

from clients.storefront.alerts import VoiceAlerts
from clients.storefront.api import StoreApiClient

logger = get_logger(__name__)

ACTIVITY_LIMIT = 6
ACTIVITY_DEDUP_WINDOW = timedelta(seconds=5)


class View(Protocol):
    def handle(self, event: ChangeEvent) -> None: ...

    async def refresh(self) -> None: ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ============================================================================
# NOTICES
# ============================================================================


@dataclass
class Notice:
    title: str
    expires_at: float


class NotificationTray:
    """Transient on-screen notices that hide themselves after ``ttl`` seconds."""

    def __init__(
        self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic
    ):
        self.ttl = ttl if ttl is not None else get_settings().NOTICE_TTL_SECONDS
        self._clock = clock
        self._notices: list[Notice] = []

    def push(self, title: str) -> Notice:
        notice = Notice(title=title, expires_at=self._clock() + self.ttl)
        self._notices.append(notice)
        return notice

    def visible(self) -> list[Notice]:
        now = self._clock()
        self._notices = [n for n in self._notices if n.expires_at > now]
        return list(self._notices)

    @property
    def current(self) -> Optional[Notice]:
        visible = self.visible()
        return visible[-1] if visible else None


# ============================================================================
# ADMIN DASHBOARD
# ============================================================================


@dataclass(frozen=True)
class ActivityItem:
    kind: str
    title: str
    timestamp: datetime


class AdminDashboardView:
    """Counters, recent activity and new-order alerts for the admin overview."""

    def __init__(
        self,
        api: StoreApiClient,
        alerts: Optional[VoiceAlerts] = None,
        tray: Optional[NotificationTray] = None,
    ):
        self.api = api
        self.alerts = alerts if alerts is not None else VoiceAlerts()
        self.tray = tray if tray is not None else NotificationTray()
        self.currency = get_settings().CURRENCY_SYMBOL

        self.store_count = 0
        self.product_count = 0
        self.active_orders = 0
        self.todays_revenue = Decimal("0.00")
        self.activity: list[ActivityItem] = []
        self._counted_orders: set[str] = set()
        self._last_status: dict[str, OrderStatus] = {}

    def add_activity(self, item: ActivityItem) -> bool:
        """Prepend an activity entry unless the same title was seen within 5s."""
        stamp = _as_utc(item.timestamp)
        for existing in self.activity:
            if (
                existing.title == item.title
                and abs(_as_utc(existing.timestamp) - stamp) <= ACTIVITY_DEDUP_WINDOW
            ):
                return False
        self.activity.insert(0, item)
        self.activity.sort(key=lambda a: _as_utc(a.timestamp), reverse=True)
        del self.activity[ACTIVITY_LIMIT:]
        return True

    def handle(self, event: ChangeEvent) -> None:
        if isinstance(event, OrderInserted):
            self._on_order_inserted(event)
        elif isinstance(event, OrderUpdated):
            self._on_order_updated(event)
        elif isinstance(event, MessageInserted):
            self.tray.push("New chat message")
            self.alerts.chime()

    def _on_order_inserted(self, event: OrderInserted) -> None:
        order = event.order
        total = format_amount(order.total, self.currency)

        if order.id not in self._counted_orders:
            self._counted_orders.add(order.id)
            self._last_status[order.id] = order.status
            if is_active(order.status):
                self.active_orders += 1
            self.tray.push(f"New order from {order.customer_name} • {total}")
            self.alerts.chime()
            self.alerts.announce(f"New order from {order.customer_name}")

        self.add_activity(
            ActivityItem(
                kind="Order",
                title=f"Order from {order.customer_name} • {total}",
                timestamp=order.created_at or event.committed_at,
            )
        )

    def _on_order_updated(self, event: OrderUpdated) -> None:
        order_id, current = event.order.id, event.order.status
        previous = self._last_status.get(order_id, event.previous_status)
        if previous is None or previous == current:
            return
        self._last_status[order_id] = current
        if is_active(previous) and not is_active(current):
            self.active_orders = max(0, self.active_orders - 1)
        elif not is_active(previous) and is_active(current):
            self.active_orders += 1

    async def refresh(self) -> None:
        stats = await self.api.dashboard_stats()
        self.store_count = int(stats.get("store_count") or 0)
        self.product_count = int(stats.get("product_count") or 0)
        self.active_orders = int(stats.get("active_orders") or 0)
        self.todays_revenue = quantize(stats.get("todays_revenue") or 0)
        self._last_status = {}
        self.activity = [
            ActivityItem(
                kind=row["kind"],
                title=row["title"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
            )
            for row in stats.get("activity") or []
        ][:ACTIVITY_LIMIT]


# ============================================================================
# CUSTOMER ORDERS
# ============================================================================


class CustomerOrdersView:
    """The signed-in customer's orders, newest first."""

    def __init__(
        self,
        api: StoreApiClient,
        user_id: str,
        tray: Optional[NotificationTray] = None,
    ):
        self.api = api
        self.user_id = user_id
        self.tray = tray
        self._orders: dict[str, OrderRecord] = {}

    @property
    def orders(self) -> list[OrderRecord]:
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(
            self._orders.values(),
            key=lambda o: _as_utc(o.created_at) if o.created_at else epoch,
            reverse=True,
        )

    def status_of(self, order_id: str) -> Optional[OrderStatus]:
        order = self._orders.get(order_id)
        return order.status if order else None

    def handle(self, event: ChangeEvent) -> None:
        if isinstance(event, OrderInserted):
            if event.order.user_id == self.user_id:
                self._orders[event.order.id] = event.order
        elif isinstance(event, OrderUpdated):
            order = event.order
            if order.user_id != self.user_id:
                return
            known = self._orders.get(order.id)
            self._orders[order.id] = order
            if self.tray is not None and (known is None or known.status != order.status):
                self.tray.push(f"Order #{order.id[:8]} is now {STATUS_LABELS[order.status]}")

    async def refresh(self) -> None:
        rows = await self.api.list_my_orders()
        self._orders = {}
        for row in rows:
            order = OrderRecord.model_validate(row)
            self._orders[order.id] = order


# ============================================================================
# CHAT
# ============================================================================


class ChatView:
    """
    One support conversation.

    ``user_id`` scopes the view to a customer's thread; admins may leave it
    unset to follow every conversation.
    """

    def __init__(self, api: StoreApiClient, user_id: Optional[str] = None):
        self.api = api
        self.user_id = user_id
        self.can_send = False
        self._messages: dict[str, MessageRecord] = {}

    @property
    def messages(self) -> list[MessageRecord]:
        return list(self._messages.values())

    def _add(self, message: MessageRecord) -> None:
        if message.id not in self._messages:
            self._messages[message.id] = message

    def handle(self, event: ChangeEvent) -> None:
        if not isinstance(event, MessageInserted):
            return
        if self.user_id is None or event.message.user_id == self.user_id:
            self._add(event.message)

    async def refresh(self) -> None:
        rows = await self.api.list_messages()
        self._messages = {}
        for row in rows:
            self._add(MessageRecord.model_validate(row))
        if self.user_id is not None:
            conversation = await self.api.get_conversation()
            self.can_send = bool(conversation.get("admin_started"))

    async def send(self, text: str) -> Optional[MessageRecord]:
        """Post a message. Blank text or a closed conversation sends nothing."""
        text = text.strip()
        if not text or not self.can_send:
            return None
        row = await self.api.send_message(text)
        message = MessageRecord.model_validate(row)
        self._add(message)
        return message
