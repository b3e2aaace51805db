"""
scheduler/events.py — Lifecycle Event Bus

The Scheduler Core publishes a SchedulerEvent for every lifecycle change.
Consumers subscribe and read from their own asyncio.Queue; the publisher
never waits on them. A subscriber that falls behind loses events (logged)
instead of stalling the dispatch loop.

Usage:
    queue = scheduler.subscribe()
    while True:
        event = await queue.get()
        print(event.kind, event.task_id)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from edgesched.observability.logger import get_logger
from edgesched.scheduler.types import utcnow

log = get_logger(__name__)


class EventKind(str, Enum):
    TASK_CREATED = "task_created"
    TASK_SCHEDULED = "task_scheduled"
    TASK_UNSCHEDULED = "task_unscheduled"
    TASK_STARTED = "task_started"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    TASK_RETRY = "task_retry"
    TASK_TIMEOUT = "task_timeout"
    TASK_PAUSED = "task_paused"
    TASK_RESUMED = "task_resumed"
    TASK_CANCELLED = "task_cancelled"
    TASK_DELETED = "task_deleted"
    SCHEDULER_PAUSED = "scheduler_paused"
    SCHEDULER_RESUMED = "scheduler_resumed"


@dataclass(frozen=True)
class SchedulerEvent:
    kind: EventKind
    task_id: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)
    at: datetime = field(default_factory=utcnow)


class EventBus:

    def __init__(self, default_maxsize: int = 1000) -> None:
        self._default_maxsize = default_maxsize
        self._subscribers: list[asyncio.Queue[SchedulerEvent]] = []
        self.dropped = 0

    def subscribe(self, maxsize: Optional[int] = None) -> asyncio.Queue[SchedulerEvent]:
        queue: asyncio.Queue[SchedulerEvent] = asyncio.Queue(
            maxsize=self._default_maxsize if maxsize is None else maxsize
        )
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SchedulerEvent]) -> bool:
        try:
            self._subscribers.remove(queue)
        except ValueError:
            return False
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, kind: EventKind, task_id: Optional[str] = None, **data: Any) -> SchedulerEvent:
        event = SchedulerEvent(kind=kind, task_id=task_id, data=data)
        for queue in self._subscribers:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self.dropped += 1
                log.warning("events.dropped", kind=kind.value, task_id=task_id)
        return event
