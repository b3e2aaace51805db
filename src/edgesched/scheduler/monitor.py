"""
scheduler/monitor.py — Task Monitor

Fixed-interval tick with three independent jobs:

  1. Timeout sweep — any RUNNING task whose elapsed time exceeds its
     timeout is handed to TaskScheduler.handle_timeout(). The supervisor's
     own wait_for normally gets there first; the sweep catches runs whose
     body ignores cancellation.
  2. Metrics — recompute SchedulerMetrics from the store.
  3. Dispatch — drive process_pending_tasks() so retried tasks whose
     delay has elapsed are picked up even without another event.

Each job is wrapped separately: a failing job is logged and the others
(and every later tick) still run.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable, Optional

from edgesched.observability.logger import get_logger
from edgesched.scheduler.types import Task, TaskStatus, utcnow

if TYPE_CHECKING:
    from edgesched.scheduler.core import TaskScheduler

log = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Metrics
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class SchedulerMetrics:
    total: int = 0
    pending: int = 0
    running: int = 0
    paused: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    average_execution_time_s: float = 0.0
    throughput: int = 0          # completions inside the throughput window
    computed_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def compute_metrics(
    tasks: Iterable[Task],
    now: Optional[datetime] = None,
    window_s: float = 60.0,
) -> SchedulerMetrics:
    now = now or utcnow()
    window_start = now - timedelta(seconds=window_s)
    m = SchedulerMetrics(computed_at=now.isoformat())
    durations: list[float] = []

    for t in tasks:
        m.total += 1
        setattr(m, t.status.value, getattr(m, t.status.value) + 1)
        if t.status is TaskStatus.COMPLETED:
            if t.execution_time_s is not None:
                durations.append(t.execution_time_s)
            if t.completed_at is not None and t.completed_at > window_start:
                m.throughput += 1

    if durations:
        m.average_execution_time_s = sum(durations) / len(durations)
    return m


def overrun_tasks(running: Iterable[Task], now: Optional[datetime] = None) -> list[Task]:
    now = now or utcnow()
    return [
        t for t in running
        if t.started_at is not None
        and (now - t.started_at).total_seconds() > t.timeout_s
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Monitor
# ─────────────────────────────────────────────────────────────────────────────

class Monitor:
    """
    Lifecycle::

        monitor = Monitor(scheduler, interval_s=10)
        monitor.start()
        await monitor.stop()
    """

    def __init__(
        self,
        scheduler: "TaskScheduler",
        interval_s: float = 10.0,
        throughput_window_s: float = 60.0,
        drive_dispatch: bool = True,
    ) -> None:
        self._scheduler = scheduler
        self._interval_s = interval_s
        self._window_s = throughput_window_s
        self._drive_dispatch = drive_dispatch
        self._handle: Optional[asyncio.Task] = None
        self.metrics = SchedulerMetrics()
        self.ticks = 0
        self.errors = 0

    @property
    def active(self) -> bool:
        return self._handle is not None and not self._handle.done()

    def start(self) -> None:
        if self.active:
            log.warning("monitor.already_running")
            return
        self._handle = asyncio.create_task(self._loop(), name="edgesched:monitor")
        log.info("monitor.started", interval_s=self._interval_s)

    async def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        handle.cancel()
        await asyncio.gather(handle, return_exceptions=True)
        log.info("monitor.stopped", ticks=self.ticks)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval_s)
            self.tick()

    def tick(self) -> SchedulerMetrics:
        """Run one monitoring pass. Never raises."""
        self.ticks += 1
        scheduler = self._scheduler

        try:
            for task in overrun_tasks(scheduler.store.running()):
                scheduler.handle_timeout(task.id)
        except Exception as e:
            self.errors += 1
            log.error("monitor.timeout_sweep_failed", error=str(e), exc_info=True)

        try:
            self.metrics = compute_metrics(scheduler.store.list(), window_s=self._window_s)
            log.debug("monitor.metrics", **self.metrics.to_dict())
        except Exception as e:
            self.errors += 1
            log.error("monitor.metrics_failed", error=str(e), exc_info=True)

        if self._drive_dispatch:
            try:
                scheduler.process_pending_tasks()
            except Exception as e:
                self.errors += 1
                log.error("monitor.dispatch_failed", error=str(e), exc_info=True)

        return self.metrics
