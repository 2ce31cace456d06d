"""
Event Service - Per-page broadcast of generation lifecycle messages

Provides:
- PageBroadcaster: subscriber groups keyed by page id
- join()/leave(): change membership of one connection
- broadcast(): deliver a message to the connections joined at call time
- subscribe(): SSE generator for a single page

Delivery is in-memory and best effort: no persistence, no replay for
connections that join later.
"""
import asyncio
import json
import logging
from collections import defaultdict
from typing import Any, AsyncGenerator, Dict, Optional, Set

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class EventType:
    """Standard page message types"""
    GENERATION_START = "generation_start"
    GENERATION_COMPLETE = "generation_complete"
    PAGE_UPDATE = "page_update"  # data.content carries the new source
    ERROR = "error"  # message carries the error text


class PageMessage(BaseModel):
    """Message delivered to page subscribers"""
    type: str
    pageId: str
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class Subscriber:
    """
    One connection's inbox

    A connection may join several pages; everything it receives lands in
    one FIFO queue so per-connection delivery order matches broadcast order.
    """

    def __init__(self, name: str = "", maxsize: int = 100):
        self.name = name
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.pages: Set[str] = set()

    def deliver(self, message: PageMessage) -> None:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"[deliver] Subscriber {self.name} queue full, dropping {message.type}")

    async def receive(self) -> PageMessage:
        return await self.queue.get()

    def __repr__(self) -> str:
        return f"Subscriber({self.name!r}, pages={sorted(self.pages)})"


class PageBroadcaster:
    """Maintains per-page subscriber groups and fans messages out to them"""

    def __init__(self):
        self._groups: Dict[str, Set[Subscriber]] = defaultdict(set)

    def join(self, page_id: str, subscriber: Subscriber) -> None:
        self._groups[page_id].add(subscriber)
        subscriber.pages.add(page_id)
        logger.info(f"[join] {subscriber.name} joined page {page_id}")

    def leave(self, page_id: str, subscriber: Subscriber) -> None:
        group = self._groups.get(page_id)
        if group is not None:
            group.discard(subscriber)
            if not group:
                del self._groups[page_id]
        subscriber.pages.discard(page_id)
        logger.info(f"[leave] {subscriber.name} left page {page_id}")

    def leave_all(self, subscriber: Subscriber) -> None:
        """Remove a connection from every group (disconnect)"""
        for page_id in list(subscriber.pages):
            self.leave(page_id, subscriber)

    def subscriber_count(self, page_id: str) -> int:
        return len(self._groups.get(page_id, ()))

    def broadcast(self, page_id: str, message: PageMessage) -> int:
        """
        Deliver a message to every connection currently joined to ``page_id``

        Returns:
            Number of subscribers the message was delivered to
        """
        subscribers = list(self._groups.get(page_id, ()))
        for subscriber in subscribers:
            subscriber.deliver(message)
        logger.debug(f"[broadcast] page={page_id} type={message.type} subscribers={len(subscribers)}")
        return len(subscribers)

    # Convenience functions for the four message kinds

    def broadcast_generation_start(self, page_id: str) -> int:
        return self.broadcast(page_id, PageMessage(
            type=EventType.GENERATION_START,
            pageId=page_id,
            message="AI started generating the page...",
        ))

    def broadcast_generation_complete(self, page_id: str) -> int:
        return self.broadcast(page_id, PageMessage(
            type=EventType.GENERATION_COMPLETE,
            pageId=page_id,
            message="Page generation complete",
        ))

    def broadcast_page_update(self, page_id: str, content: str) -> int:
        return self.broadcast(page_id, PageMessage(
            type=EventType.PAGE_UPDATE,
            pageId=page_id,
            data={"content": content},
        ))

    def broadcast_error(self, page_id: str, error: str) -> int:
        return self.broadcast(page_id, PageMessage(
            type=EventType.ERROR,
            pageId=page_id,
            message=error,
        ))


async def subscribe(
    broadcaster: PageBroadcaster,
    page_id: str,
    keepalive: float = 30.0,
) -> AsyncGenerator[str, None]:
    """
    Subscribe to a page's messages (SSE generator)

    Yields SSE-formatted event strings.

    Usage:
        @router.get("/api/pages/{page_id}/events")
        async def page_events(page_id: str):
            return StreamingResponse(
                subscribe(broadcaster, page_id),
                media_type="text/event-stream"
            )
    """
    subscriber = Subscriber(name=f"sse:{page_id}")
    broadcaster.join(page_id, subscriber)

    try:
        yield f": connected to page {page_id}\n\n"

        while True:
            try:
                message = await asyncio.wait_for(subscriber.receive(), timeout=keepalive)
                yield f"event: {message.type}\n"
                yield f"data: {json.dumps(message.model_dump(exclude_none=True), ensure_ascii=False)}\n\n"
            except asyncio.TimeoutError:
                # Keep proxies from closing an idle stream
                yield ": keepalive\n\n"
    finally:
        broadcaster.leave_all(subscriber)


__all__ = [
    "EventType",
    "PageMessage",
    "Subscriber",
    "PageBroadcaster",
    "subscribe",
]
