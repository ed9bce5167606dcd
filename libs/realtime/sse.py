"""Server-sent events transport for the change feed."""

import asyncio
import json
from typing import AsyncIterator, Callable, Iterable, Optional

from fastapi import Request
from fastapi.responses import StreamingResponse

from libs.common.logging import get_logger
from libs.realtime.events import ChangePayload
from libs.realtime.feed import ChangeFeed

logger = get_logger(__name__)

KEEPALIVE_SECONDS = 15.0

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(payload: ChangePayload) -> str:
    return f"event: change\ndata: {json.dumps(payload.to_wire())}\n\n"


async def change_stream(
    request: Request,
    feed: ChangeFeed,
    tables: Iterable[str],
    predicate: Optional[Callable[[ChangePayload], bool]] = None,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``tables`` until the client disconnects.

    ``predicate`` narrows the stream further, e.g. to one user's rows.
    """
    subscription = feed.subscribe(tables)
    try:
        yield ": connected\n\n"
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected")
                break
            try:
                payload = await asyncio.wait_for(subscription.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": ping\n\n"
                continue
            if payload is None:
                break
            if predicate is not None and not predicate(payload):
                continue
            yield format_sse(payload)
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled")
        raise
    finally:
        subscription.close()


def change_stream_response(
    request: Request,
    feed: ChangeFeed,
    tables: Iterable[str],
    predicate: Optional[Callable[[ChangePayload], bool]] = None,
) -> StreamingResponse:
    return StreamingResponse(
        change_stream(request, feed, tables, predicate),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
