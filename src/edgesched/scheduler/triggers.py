"""
scheduler/triggers.py — Trigger Subsystem

Turns recurring schedules into "submit this task now" calls on the
Scheduler Core. Independent of the dispatch loop: a firing only submits,
it never waits for the run.

Design
------
* Pure asyncio — one watcher coroutine per enabled Schedule, no threads.
* Cron expressions are parsed by croniter; intervals are plain milliseconds.
* Each Schedule owns its watcher task. remove() / disable() / close()
  cancel it, and remove() / close() also wait for it to exit, so a
  removed schedule never fires again.
* A failing firing is logged and the watcher keeps going. A firing for a
  task that no longer exists ends the watcher.

Usage::

    manager = ScheduleManager(fire=scheduler.submit_task)
    sched = manager.add("task_1", ScheduleSpec(interval_ms=500))
    ...
    await manager.remove(sched.id)
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union

from croniter import croniter

from edgesched.exceptions import NotFoundError, ValidationError
from edgesched.observability.logger import get_logger
from edgesched.scheduler.types import ScheduleSpec, utcnow

log = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Triggers
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CronTrigger:
    expression: str

    def __post_init__(self) -> None:
        if not croniter.is_valid(self.expression):
            raise ValidationError(f"Invalid cron expression: '{self.expression}'")

    def next_fire(self, after: datetime) -> datetime:
        """Return the next UTC datetime matching the expression after `after`."""
        it = croniter(self.expression, after.astimezone(timezone.utc))
        return it.get_next(datetime).replace(tzinfo=timezone.utc)

    def describe(self) -> str:
        return f"cron:{self.expression}"


@dataclass(frozen=True)
class IntervalTrigger:
    interval_ms: int

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValidationError("interval_ms must be > 0")

    def next_fire(self, after: datetime) -> datetime:
        return after + timedelta(milliseconds=self.interval_ms)

    def describe(self) -> str:
        return f"every:{self.interval_ms}ms"


Trigger = Union[CronTrigger, IntervalTrigger]


def build_trigger(spec: ScheduleSpec) -> Trigger:
    if spec.cron is not None:
        return CronTrigger(spec.cron)
    return IntervalTrigger(spec.interval_ms)


# ─────────────────────────────────────────────────────────────────────────────
# Schedule
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class Schedule:
    id: str
    task_id: str
    trigger: Trigger
    enabled: bool = True
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    fire_count: int = 0
    last_fired_at: Optional[datetime] = None
    _handle: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._handle is not None and not self._handle.done()

    def next_run_after(self, dt: datetime) -> datetime:
        return self.trigger.next_fire(max(dt, self.start_at) if self.start_at else dt)

    def to_dict(self) -> dict[str, Any]:
        try:
            next_run = self.next_run_after(utcnow()).isoformat() if self.enabled else None
        except Exception:
            next_run = "unknown"
        return {
            "id": self.id,
            "task_id": self.task_id,
            "trigger": self.trigger.describe(),
            "enabled": self.enabled,
            "start_at": self.start_at.isoformat() if self.start_at else None,
            "end_at": self.end_at.isoformat() if self.end_at else None,
            "fire_count": self.fire_count,
            "last_fired_at": self.last_fired_at.isoformat() if self.last_fired_at else None,
            "next_run_utc": next_run,
        }


# ─────────────────────────────────────────────────────────────────────────────
# ScheduleManager
# ─────────────────────────────────────────────────────────────────────────────

class ScheduleManager:
    """
    Owns every Schedule and its watcher task.

    `fire` is called with the task id on each trigger. It is expected to be
    the core's submit_task(); a NotFoundError from it retires the schedule.
    """

    def __init__(self, fire: Callable[[str], Any]) -> None:
        self._fire = fire
        self._schedules: dict[str, Schedule] = {}

    # ── Public API ────────────────────────────────────────────────────────────

    def add(self, task_id: str, spec: ScheduleSpec) -> Schedule:
        schedule = Schedule(
            id=f"schedule_{task_id}_{uuid.uuid4().hex[:8]}",
            task_id=task_id,
            trigger=build_trigger(spec),
            enabled=spec.enabled,
            start_at=spec.start_at,
            end_at=spec.end_at,
        )
        self._schedules[schedule.id] = schedule
        if schedule.enabled:
            self._start(schedule)
        log.info(
            "triggers.schedule_added",
            schedule_id=schedule.id,
            task_id=task_id,
            trigger=schedule.trigger.describe(),
            enabled=schedule.enabled,
        )
        return schedule

    async def remove(self, schedule_id: str) -> Schedule:
        schedule = self.get(schedule_id)
        del self._schedules[schedule_id]
        await self._release(schedule)
        log.info("triggers.schedule_removed", schedule_id=schedule_id, task_id=schedule.task_id)
        return schedule

    async def remove_for_task(self, task_id: str) -> list[Schedule]:
        removed = []
        for schedule in [s for s in self._schedules.values() if s.task_id == task_id]:
            removed.append(await self.remove(schedule.id))
        return removed

    def enable(self, schedule_id: str) -> Schedule:
        schedule = self.get(schedule_id)
        if not schedule.enabled:
            schedule.enabled = True
            self._start(schedule)
            log.info("triggers.schedule_enabled", schedule_id=schedule_id)
        return schedule

    def disable(self, schedule_id: str) -> Schedule:
        """Stop future firings. A run already submitted is not affected."""
        schedule = self.get(schedule_id)
        if schedule.enabled:
            schedule.enabled = False
            if schedule._handle is not None:
                schedule._handle.cancel()
                schedule._handle = None
            log.info("triggers.schedule_disabled", schedule_id=schedule_id)
        return schedule

    def get(self, schedule_id: str) -> Schedule:
        try:
            return self._schedules[schedule_id]
        except KeyError:
            raise NotFoundError("schedule", schedule_id) from None

    def list(self, task_id: Optional[str] = None) -> list[Schedule]:
        return [s for s in self._schedules.values() if task_id is None or s.task_id == task_id]

    def __len__(self) -> int:
        return len(self._schedules)

    async def close(self) -> None:
        """Cancel every watcher and wait for all of them to finish."""
        schedules = list(self._schedules.values())
        self._schedules.clear()
        for schedule in schedules:
            await self._release(schedule)
        log.info("triggers.closed", released=len(schedules))

    # ── Watcher ───────────────────────────────────────────────────────────────

    def _start(self, schedule: Schedule) -> None:
        schedule._handle = asyncio.create_task(
            self._watcher_loop(schedule),
            name=f"edgesched:watch:{schedule.id}",
        )

    async def _release(self, schedule: Schedule) -> None:
        handle, schedule._handle = schedule._handle, None
        if handle is None:
            return
        handle.cancel()
        await asyncio.gather(handle, return_exceptions=True)

    async def _watcher_loop(self, schedule: Schedule) -> None:
        """Sleep until the next trigger, fire, repeat. Exits when disabled or expired."""
        anchor = max(utcnow(), schedule.start_at) if schedule.start_at else utcnow()
        try:
            while schedule.enabled:
                now = utcnow()
                next_at = schedule.trigger.next_fire(anchor)
                if next_at < now:
                    # fell behind (event loop stall); skip the missed slots
                    next_at = schedule.trigger.next_fire(now)
                if schedule.end_at and next_at > schedule.end_at:
                    log.info("triggers.schedule_expired", schedule_id=schedule.id)
                    break

                await asyncio.sleep(max((next_at - now).total_seconds(), 0.0))
                anchor = next_at
                if not schedule.enabled:
                    break

                schedule.fire_count += 1
                schedule.last_fired_at = utcnow()
                try:
                    self._fire(schedule.task_id)
                except NotFoundError:
                    log.warning(
                        "triggers.task_missing",
                        schedule_id=schedule.id,
                        task_id=schedule.task_id,
                    )
                    break
                except Exception as e:
                    log.error(
                        "triggers.fire_failed",
                        schedule_id=schedule.id,
                        task_id=schedule.task_id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
        except asyncio.CancelledError:
            log.debug("triggers.watcher_cancelled", schedule_id=schedule.id)
            raise
