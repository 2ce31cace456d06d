"""
Tests for the PageBroadcaster
"""
import asyncio

import pytest

from services.event_service import (
    EventType,
    PageBroadcaster,
    PageMessage,
    Subscriber,
    subscribe,
)


def drain(subscriber: Subscriber):
    messages = []
    while not subscriber.queue.empty():
        messages.append(subscriber.queue.get_nowait())
    return messages


class TestPageBroadcaster:
    """Test suite for PageBroadcaster"""

    @pytest.fixture
    def broadcaster(self):
        return PageBroadcaster()

    def test_broadcast_reaches_joined_subscribers(self, broadcaster):
        first, second = Subscriber("a"), Subscriber("b")
        broadcaster.join("page-1", first)
        broadcaster.join("page-1", second)

        delivered = broadcaster.broadcast_generation_start("page-1")

        assert delivered == 2
        assert [m.type for m in drain(first)] == [EventType.GENERATION_START]
        assert [m.type for m in drain(second)] == [EventType.GENERATION_START]

    def test_late_join_never_receives_earlier_message(self, broadcaster):
        early, late = Subscriber("early"), Subscriber("late")
        broadcaster.join("page-1", early)

        broadcaster.broadcast_error("page-1", "first")
        broadcaster.join("page-1", late)
        broadcaster.broadcast_error("page-1", "second")

        assert [m.message for m in drain(early)] == ["first", "second"]
        assert [m.message for m in drain(late)] == ["second"]

    def test_messages_are_scoped_to_page(self, broadcaster):
        subscriber = Subscriber()
        broadcaster.join("page-1", subscriber)

        assert broadcaster.broadcast_generation_complete("page-2") == 0
        assert drain(subscriber) == []

    def test_delivery_order_matches_broadcast_order(self, broadcaster):
        subscriber = Subscriber()
        broadcaster.join("page-1", subscriber)

        broadcaster.broadcast_generation_start("page-1")
        broadcaster.broadcast_error("page-1", "Component build failed: x")
        broadcaster.broadcast_page_update("page-1", "<App/>")
        broadcaster.broadcast_generation_complete("page-1")

        messages = drain(subscriber)
        assert [m.type for m in messages] == [
            EventType.GENERATION_START,
            EventType.ERROR,
            EventType.PAGE_UPDATE,
            EventType.GENERATION_COMPLETE,
        ]
        assert messages[2].data == {"content": "<App/>"}
        assert all(m.pageId == "page-1" for m in messages)

    def test_leave_stops_delivery(self, broadcaster):
        subscriber = Subscriber()
        broadcaster.join("page-1", subscriber)
        broadcaster.leave("page-1", subscriber)

        broadcaster.broadcast_generation_start("page-1")

        assert drain(subscriber) == []
        assert broadcaster.subscriber_count("page-1") == 0

    def test_leave_all_removes_every_membership(self, broadcaster):
        subscriber = Subscriber()
        broadcaster.join("page-1", subscriber)
        broadcaster.join("page-2", subscriber)

        broadcaster.leave_all(subscriber)

        assert subscriber.pages == set()
        assert broadcaster.subscriber_count("page-1") == 0
        assert broadcaster.subscriber_count("page-2") == 0

    def test_full_queue_drops_without_raising(self, broadcaster):
        subscriber = Subscriber(maxsize=1)
        broadcaster.join("page-1", subscriber)

        broadcaster.broadcast_error("page-1", "one")
        broadcaster.broadcast_error("page-1", "two")

        assert [m.message for m in drain(subscriber)] == ["one"]

    def test_message_serialization_omits_empty_fields(self):
        message = PageMessage(type=EventType.ERROR, pageId="p", message="bad")
        assert message.model_dump(exclude_none=True) == {"type": "error", "pageId": "p", "message": "bad"}


class TestSubscribe:
    """Test suite for the SSE generator"""

    async def test_streams_messages_as_sse(self):
        broadcaster = PageBroadcaster()
        stream = subscribe(broadcaster, "page-1", keepalive=1)

        assert (await stream.__anext__()).startswith(": connected")
        assert broadcaster.subscriber_count("page-1") == 1

        broadcaster.broadcast_page_update("page-1", "code")
        event_line = await asyncio.wait_for(stream.__anext__(), timeout=1)
        data_line = await asyncio.wait_for(stream.__anext__(), timeout=1)

        assert event_line == "event: page_update\n"
        assert '"content": "code"' in data_line

        await stream.aclose()
        assert broadcaster.subscriber_count("page-1") == 0
