"""
Realtime bridge between change feeds and client views.

One producer task per source decodes raw change payloads into typed events
and queues them; a single consumer task hands each event to every view.
A polling task refreshes the views on a fixed interval so they converge
even if a push channel drops silently.

Usage:
    bridge = RealtimeBridge([dashboard], sources=[api.stream_changes()])
    async with bridge:
        ...
"""

import asyncio
import inspect
from typing import Any, AsyncIterable, Iterable, Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.realtime.events import ChangeEvent, decode_change

from clients.storefront.views import View

logger = get_logger(__name__)


class RealtimeBridge:
    def __init__(
        self,
        views: Iterable[View] = (),
        sources: Iterable[AsyncIterable[Any]] = (),
        poll: bool = True,
        poll_interval: Optional[float] = None,
    ):
        self.views: list[View] = list(views)
        self.poll = poll
        self.poll_interval = (
            poll_interval
            if poll_interval is not None
            else get_settings().REALTIME_POLL_INTERVAL_SECONDS
        )
        self._sources: list[AsyncIterable[Any]] = list(sources)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self.running = False

    def add_view(self, view: View) -> None:
        self.views.append(view)

    def add_source(self, source: AsyncIterable[Any]) -> None:
        self._sources.append(source)
        if self.running:
            self._tasks.append(asyncio.create_task(self._produce(source)))

    # ------------------------------------------------------------------
    # Event flow
    # ------------------------------------------------------------------

    def dispatch(self, event: ChangeEvent) -> None:
        """Apply one event to every view. A failing view does not stop the others."""
        for view in self.views:
            try:
                view.handle(event)
            except Exception:
                logger.exception("%s failed to apply %s", type(view).__name__, type(event).__name__)

    async def _produce(self, source: AsyncIterable[Any]) -> None:
        try:
            async for raw in source:
                event = decode_change(raw)
                if event is not None:
                    await self._queue.put(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Realtime source stopped (%s); polling continues", e)

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self.dispatch(event)
            finally:
                self._queue.task_done()

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            await self.refresh_now()

    async def refresh_now(self) -> None:
        """Re-fetch every view's state from the services."""
        for view in self.views:
            try:
                await view.refresh()
            except Exception as e:
                logger.warning("Refresh of %s failed: %s", type(view).__name__, e)

    async def drain(self) -> None:
        """Wait until every queued event has been dispatched."""
        await self._queue.join()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self._tasks = [asyncio.create_task(self._produce(s)) for s in self._sources]
        self._tasks.append(asyncio.create_task(self._consume()))
        if self.poll:
            self._tasks.append(asyncio.create_task(self._poll()))

    async def stop(self) -> None:
        """Cancel the tasks and release every source subscription."""
        if not self.running:
            return
        self.running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        for source in self._sources:
            close = getattr(source, "aclose", None) or getattr(source, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("Error closing realtime source: %s", e)

    async def __aenter__(self) -> "RealtimeBridge":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
