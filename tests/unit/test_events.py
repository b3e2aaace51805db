"""
tests/unit/test_events.py — Event Bus Unit Tests

Covers:
  - publish fan-out to every subscriber
  - full subscriber queues drop events without blocking the publisher
  - unsubscribe
"""

from __future__ import annotations

import pytest

from edgesched.scheduler.events import EventBus, EventKind


class TestEventBus:

    @pytest.mark.asyncio
    async def test_fan_out(self):
        bus = EventBus()
        q1, q2 = bus.subscribe(), bus.subscribe()
        event = bus.publish(EventKind.TASK_CREATED, "t1", name="resize")
        assert q1.get_nowait() is event
        assert q2.get_nowait() is event
        assert event.data == {"name": "resize"}
        assert event.at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_full_queue_drops(self):
        bus = EventBus()
        q = bus.subscribe(maxsize=1)
        bus.publish(EventKind.TASK_STARTED, "t1")
        bus.publish(EventKind.TASK_COMPLETED, "t1")
        assert bus.dropped == 1
        assert q.qsize() == 1
        assert q.get_nowait().kind is EventKind.TASK_STARTED

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        q = bus.subscribe()
        assert bus.unsubscribe(q) is True
        assert bus.unsubscribe(q) is False
        bus.publish(EventKind.SCHEDULER_PAUSED)
        assert q.empty()
        assert bus.subscriber_count == 0

    def test_publish_without_subscribers(self):
        event = EventBus().publish(EventKind.SCHEDULER_RESUMED)
        assert event.task_id is None
