"""In-process realtime change feed.

Services publish a ``ChangePayload`` after each commit; subscribers receive
the payloads for the tables they asked for through a bounded queue.

Usage:
    from libs.realtime.feed import change_feed

    async with change_feed.subscribe(["orders"]) as subscription:
        async for payload in subscription:
            ...
"""

import asyncio
from typing import Any, Iterable, Optional

from libs.common.logging import get_logger
from libs.realtime.events import ChangePayload, ChangeType

logger = get_logger(__name__)

DEFAULT_QUEUE_SIZE = 100

_CLOSED = object()


class Subscription:
    """A single consumer's view of the feed, filtered by table."""

    def __init__(self, feed: "ChangeFeed", tables: frozenset[str], maxsize: int):
        self._feed = feed
        self.tables = tables
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0

    def wants(self, payload: ChangePayload) -> bool:
        return not self.tables or payload.table in self.tables

    def offer(self, item: Any) -> None:
        """Enqueue without blocking; the oldest item gives way when full."""
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.warning(
                "Realtime subscriber on %s is lagging; dropped oldest payload",
                ",".join(sorted(self.tables)) or "*",
            )
        self._queue.put_nowait(item)

    async def get(self) -> Optional[ChangePayload]:
        """Next payload, or None once the subscription is closed."""
        if self.closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._feed._remove(self)
        self.offer(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangePayload:
        item = await self.get()
        if item is None:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class ChangeFeed:
    """Fan-out of committed row changes to every interested subscriber."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscriptions: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, tables: Iterable[str] = ()) -> Subscription:
        subscription = Subscription(self, frozenset(tables), self.queue_size)
        self._subscriptions.append(subscription)
        logger.debug("Realtime subscription opened for %s", sorted(subscription.tables))
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug("Realtime subscription closed for %s", sorted(subscription.tables))

    def publish(self, payload: ChangePayload) -> int:
        """Deliver to matching subscribers. Returns how many received it."""
        delivered = 0
        for subscription in list(self._subscriptions):
            if subscription.wants(payload):
                subscription.offer(payload)
                delivered += 1
        return delivered

    def publish_insert(self, table: str, row: dict[str, Any]) -> int:
        return self.publish(ChangePayload(table=table, event_type=ChangeType.INSERT, new=row))

    def publish_update(self, table: str, row: dict[str, Any], old: dict[str, Any]) -> int:
        return self.publish(
            ChangePayload(table=table, event_type=ChangeType.UPDATE, new=row, old=old)
        )

    def close_all(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.close()


change_feed = ChangeFeed()
