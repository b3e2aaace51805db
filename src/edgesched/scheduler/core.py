"""
scheduler/core.py — TaskScheduler (Scheduler Core)

Accepts tasks, runs the dispatch loop under a global concurrency ceiling,
hands selected tasks to the ExecutionSupervisor and applies every outcome
back to the TaskStore.

Design
------
* Single writer: every decision (state transition, reserve, release,
  strategy call) runs on the event loop thread and never awaits in the
  middle, so each public operation is atomic with respect to the others.
* Bounded concurrency: running ≤ max_concurrent_tasks globally and
  running ≤ capacity per executor. Slots are Reservations; each run holds
  one inside a `with` block, so it is released on every exit path.
* Event driven: create / resume / completion / retry timers schedule one
  coalesced dispatch pass via loop.call_soon(). The Monitor drives a pass
  on every tick as well.
* Fail-safe: a task body's error or timeout is recorded on the task and
  never propagates into the dispatch loop.
* Stale-run guard: pausing, cancelling or timing out a running task
  detaches its run. If the body finishes later its outcome is discarded.

Usage::

    registry = ExecutorRegistry()
    registry.register(Executor(id="local", capacity=4))
    scheduler = TaskScheduler(registry, runner=HandlerRegistry.with_builtins())
    await scheduler.start()
    task = scheduler.create_task({"name": "resize", "type": "echo"})
    ...
    await scheduler.stop()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from edgesched.exceptions import (
    CapacityError,
    InvalidStateError,
    ValidationError,
)
from edgesched.handlers import HandlerRegistry
from edgesched.observability.logger import bind_task, clear_task, get_logger
from edgesched.scheduler.events import EventBus, EventKind, SchedulerEvent
from edgesched.scheduler.monitor import Monitor, compute_metrics
from edgesched.scheduler.registry import ExecutorRegistry, Reservation
from edgesched.scheduler.store import TaskDefaults, TaskStore
from edgesched.scheduler.strategies import Strategy, get_strategy
from edgesched.scheduler.supervisor import ExecutionSupervisor, RunOutcome, Runner
from edgesched.scheduler.triggers import Schedule, ScheduleManager
from edgesched.scheduler.types import (
    Executor,
    ScheduleSpec,
    Task,
    TaskPriority,
    TaskSpec,
    TaskStatus,
    utcnow,
)

log = get_logger(__name__)


def _coerce(model: type[BaseModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or '?'}: {e['msg']}" for e in exc.errors()
        )
        raise ValidationError(problems) from exc


# ─────────────────────────────────────────────────────────────────────────────
# _Run — one dispatched attempt
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class _Run:
    task_id: str
    attempt: int
    reservation: Reservation
    handle: Optional[asyncio.Task] = None


# ─────────────────────────────────────────────────────────────────────────────
# TaskScheduler
# ─────────────────────────────────────────────────────────────────────────────

class TaskScheduler:
    """
    Bounded-concurrency task scheduler.

    Lifecycle::

        await scheduler.start()   # monitor tick + first dispatch pass
        await scheduler.stop()    # schedules, timers, monitor and runs torn down

    Introspection::

        scheduler.get_statistics()
        scheduler.list_tasks(status="running")
        scheduler.subscribe()     # asyncio.Queue of SchedulerEvent
    """

    def __init__(
        self,
        registry: Optional[ExecutorRegistry] = None,
        runner: Optional[Runner] = None,
        *,
        max_concurrent_tasks: int = 100,
        strategy: str = "fifo",
        defaults: Optional[TaskDefaults] = None,
        max_tasks: Optional[int] = None,
        monitor_interval_s: float = 10.0,
        throughput_window_s: float = 60.0,
        event_queue_size: int = 1000,
        shutdown_grace_s: float = 5.0,
        keep_runs: Optional[int] = 10,
    ) -> None:
        if max_concurrent_tasks < 1:
            raise ValidationError("max_concurrent_tasks must be >= 1")
        if keep_runs is not None and keep_runs < 1:
            raise ValidationError("keep_runs must be >= 1")
        self.registry = registry if registry is not None else ExecutorRegistry()
        self.store = TaskStore(self.registry, defaults=defaults, max_tasks=max_tasks)
        self.events = EventBus(default_maxsize=event_queue_size)
        self.schedules = ScheduleManager(fire=self.submit_task)
        self.monitor = Monitor(
            self,
            interval_s=monitor_interval_s,
            throughput_window_s=throughput_window_s,
        )
        self._supervisor = ExecutionSupervisor(runner or HandlerRegistry.with_builtins())
        self._max_concurrent = max_concurrent_tasks
        self._strategy_name = strategy
        self._strategy: Strategy = get_strategy(strategy)
        self._window_s = throughput_window_s
        self._shutdown_grace_s = shutdown_grace_s
        self._keep_runs = keep_runs

        self._runs: dict[str, _Run] = {}
        self._zombies: set[asyncio.Task] = set()
        self._timers: set[asyncio.TimerHandle] = set()
        self._instance_seq: dict[str, int] = {}
        self._paused = False
        self._dispatch_scheduled = False
        self._running = False

        log.info(
            "scheduler.init",
            max_concurrent=max_concurrent_tasks,
            strategy=strategy,
            executors=[e.id for e in self.registry.list()],
        )

    # ── Factory ───────────────────────────────────────────────────────────────

    @classmethod
    def from_settings(cls, settings, runner: Optional[Runner] = None) -> "TaskScheduler":
        cfg = settings.scheduler
        registry = ExecutorRegistry()
        for ex in settings.executors:
            registry.register(ex.to_executor())
        return cls(
            registry=registry,
            runner=runner,
            max_concurrent_tasks=cfg.max_concurrent_tasks,
            strategy=cfg.strategy,
            defaults=TaskDefaults(
                timeout_s=cfg.task_timeout_s,
                max_retries=cfg.retry_attempts,
                retry_delay_s=cfg.retry_delay_s,
            ),
            max_tasks=cfg.max_tasks,
            monitor_interval_s=cfg.monitor_interval_s,
            throughput_window_s=cfg.throughput_window_s,
            event_queue_size=cfg.event_queue_size,
            keep_runs=cfg.keep_runs,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            log.warning("scheduler.already_running")
            return
        self._running = True
        self.monitor.start()
        self._kick()
        log.info("scheduler.started")

    async def stop(self) -> None:
        """Tear down monitor, schedules, retry timers and in-flight runs."""
        self._running = False
        await self.monitor.stop()
        await self.schedules.close()

        for timer in self._timers:
            timer.cancel()
        self._timers.clear()

        handles = []
        for task_id, run in list(self._runs.items()):
            del self._runs[task_id]
            run.reservation.release()
            self.store.transition(task_id, TaskStatus.RUNNING, TaskStatus.PENDING)
            log.info("scheduler.run_interrupted", task_id=task_id)
            if run.handle is not None:
                self._abandon(run)
                handles.append(run.handle)
        if handles:
            _, still_running = await asyncio.wait(handles, timeout=self._shutdown_grace_s)
            if still_running:
                log.warning("scheduler.zombies_at_shutdown", count=len(still_running))
        log.info("scheduler.stopped")

    # ── Executors ─────────────────────────────────────────────────────────────

    def register_executor(self, executor: Executor) -> Executor:
        registered = self.registry.register(executor)
        self._kick()
        return registered

    def unregister_executor(self, executor_id: str) -> Executor:
        """Refused while any non-terminal task still targets the executor."""
        self.registry.get(executor_id)
        waiting = [
            t.id for t in self.store.list(executor=executor_id)
            if t.status in (TaskStatus.PENDING, TaskStatus.PAUSED)
        ]
        if waiting:
            raise InvalidStateError(
                executor_id,
                "referenced",
                f"Executor '{executor_id}' still has {len(waiting)} queued task(s)",
            )
        return self.registry.unregister(executor_id)

    # ── Task creation & scheduling ────────────────────────────────────────────

    def create_task(self, spec: Union[TaskSpec, dict]) -> Task:
        """Validate and store a new pending task. Raises ValidationError."""
        spec = _coerce(TaskSpec, spec)
        task = self.store.create(spec)
        self.events.publish(EventKind.TASK_CREATED, task.id, name=task.name)
        log.info(
            "scheduler.task_created",
            task_id=task.id,
            priority=task.priority.value,
            executor=task.executor,
        )
        self._kick()
        return task

    def schedule_task(self, task_id: str, spec: Union[ScheduleSpec, dict]) -> Schedule:
        """Attach a cron / interval trigger to an existing task."""
        self.store.get(task_id)
        spec = _coerce(ScheduleSpec, spec)
        schedule = self.schedules.add(task_id, spec)
        self.events.publish(
            EventKind.TASK_SCHEDULED,
            task_id,
            schedule_id=schedule.id,
            trigger=schedule.trigger.describe(),
        )
        return schedule

    async def unschedule(self, schedule_id: str) -> Schedule:
        schedule = await self.schedules.remove(schedule_id)
        self.events.publish(EventKind.TASK_UNSCHEDULED, schedule.task_id, schedule_id=schedule_id)
        return schedule

    def set_schedule_enabled(self, schedule_id: str, enabled: bool) -> Schedule:
        if enabled:
            return self.schedules.enable(schedule_id)
        return self.schedules.disable(schedule_id)

    # ── Triggering ────────────────────────────────────────────────────────────

    def execute_task(self, task_id: str) -> bool:
        """
        Manual trigger: start a pending task now, bypassing the strategy.

        Returns True if it started, False if it has to wait for a free slot
        (it stays pending and the dispatch loop will pick it up).
        """
        task = self.store.get(task_id)
        if task.status is not TaskStatus.PENDING:
            raise InvalidStateError(task_id, task.status.value, f"Task {task_id} is not in pending status")
        return self._try_dispatch(task_id, honour_pause=False)

    def submit_task(self, task_id: str) -> bool:
        """
        Trigger path used by schedules. Never overlaps runs of one task.

        running (itself or a run instance)  → no-op
        pending                             → dispatch attempt
        completed / failed                  → new run instance, then dispatch
                                              (oldest finished instances beyond
                                              keep_runs are dropped first)
        paused / cancelled                  → skipped

        Returns True only if a run actually started.
        """
        task = self.store.get(task_id)
        instances = self.store.list(origin_id=task_id)

        if task.status is TaskStatus.RUNNING or any(t.status is TaskStatus.RUNNING for t in instances):
            log.info("scheduler.submit_skipped.still_running", task_id=task_id)
            return False
        if any(t.status is TaskStatus.PENDING for t in instances):
            log.info("scheduler.submit_skipped.already_queued", task_id=task_id)
            return False
        if task.status is TaskStatus.PENDING:
            if task.retry_at is not None and task.retry_at > utcnow():
                log.info("scheduler.submit_skipped.retry_wait", task_id=task_id)
                return False
            return self._try_dispatch(task_id)
        if task.status in (TaskStatus.PAUSED, TaskStatus.CANCELLED):
            log.info("scheduler.submit_skipped", task_id=task_id, status=task.status.value)
            return False

        self._trim_runs(task_id)
        self._instance_seq[task_id] = self._instance_seq.get(task_id, 0) + 1
        instance = self.store.create(
            self._instance_spec(task, self._instance_seq[task_id]), origin_id=task_id
        )
        self.events.publish(EventKind.TASK_CREATED, instance.id, name=instance.name, origin_id=task_id)
        log.info("scheduler.run_instance_created", task_id=instance.id, origin_id=task_id)
        return self._try_dispatch(instance.id)

    def _trim_runs(self, origin_id: str) -> None:
        """Drop the oldest finished run instances so a new one keeps the total at keep_runs."""
        if self._keep_runs is None:
            return
        finished = [t for t in self.store.list(origin_id=origin_id) if t.status.is_terminal]
        excess = len(finished) - (self._keep_runs - 1)
        if excess <= 0:
            return
        for old in finished[:excess]:
            self.store.delete(old.id)
        log.debug("scheduler.runs_trimmed", origin_id=origin_id, removed=excess)

    @staticmethod
    def _instance_spec(task: Task, n: int) -> TaskSpec:
        return TaskSpec(
            id=f"{task.id}#{n}",
            name=task.name,
            type=task.type,
            priority=task.priority,
            executor=task.executor,
            parameters=task.parameters,
            resources=task.resources,
            requires=sorted(task.requires),
            timeout_s=task.timeout_s,
            max_retries=task.max_retries,
            retry_delay_s=task.retry_delay_s,
            metadata=task.metadata,
        )

    # ── Dispatch loop ─────────────────────────────────────────────────────────

    def process_pending_tasks(self, strategy: Optional[str] = None) -> int:
        """
        One dispatch cycle. Returns the number of tasks started.

        Stops when the ceiling is reached, the strategy finds nothing, or
        the chosen task's executor is full (it waits for the next cycle).
        """
        self._dispatch_scheduled = False
        if self._paused:
            return 0
        select = get_strategy(strategy) if strategy else self._strategy
        started = 0
        while self.store.running_count < self._max_concurrent:
            task_id = select(self.store.eligible_pending(), self.registry)
            if task_id is None:
                break
            try:
                if not self._dispatch(task_id):
                    continue
            except CapacityError as e:
                log.debug("scheduler.dispatch_waiting", task_id=task_id, reason=str(e))
                break
            started += 1
        return started

    def _try_dispatch(self, task_id: str, honour_pause: bool = True) -> bool:
        if honour_pause and self._paused:
            return False
        if self.store.running_count >= self._max_concurrent:
            log.info("scheduler.ceiling_reached", task_id=task_id, max_concurrent=self._max_concurrent)
            return False
        try:
            return self._dispatch(task_id)
        except CapacityError as e:
            log.info("scheduler.dispatch_waiting", task_id=task_id, reason=str(e))
            return False

    def _dispatch(self, task_id: str) -> bool:
        """Start task_id. Returns False if it was failed instead of started."""
        task = self.store.get(task_id)
        if task.executor not in self.registry:
            self.store.transition(task_id, TaskStatus.PENDING, TaskStatus.FAILED)
            self._record_failure(task, f"Invalid executor: {task.executor}")
            return False
        reservation = self.registry.reserve(task.executor)
        try:
            self.store.transition(task_id, TaskStatus.PENDING, TaskStatus.RUNNING)
        except Exception:
            reservation.release()
            raise

        run = _Run(task_id=task_id, attempt=task.attempts, reservation=reservation)
        self._runs[task_id] = run
        run.handle = asyncio.create_task(
            self._run_task(run, task),
            name=f"edgesched:run:{task_id}:{task.attempts}",
        )
        self.events.publish(EventKind.TASK_STARTED, task_id, executor=task.executor, attempt=task.attempts)
        log.info(
            "scheduler.task_started",
            task_id=task_id,
            executor=task.executor,
            attempt=task.attempts,
        )
        return True

    def _kick(self) -> None:
        """Schedule one coalesced dispatch pass on the running loop, if any."""
        if self._dispatch_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._dispatch_scheduled = True
        loop.call_soon(self._dispatch_soon)

    def _dispatch_soon(self) -> None:
        try:
            self.process_pending_tasks()
        except Exception as e:
            log.error("scheduler.dispatch_failed", error=str(e), exc_info=True)

    # ── Execution ─────────────────────────────────────────────────────────────

    async def _run_task(self, run: _Run, task: Task) -> None:
        """Supervise one attempt. Holds the executor slot for its whole body."""
        bind_task(task.id, task.executor)
        try:
            with run.reservation:
                outcome = await self._supervisor.run(task)
                self._apply_outcome(run, outcome)
        except asyncio.CancelledError:
            log.info("scheduler.run_abandoned", task_id=run.task_id, attempt=run.attempt)
            raise
        except Exception as e:
            log.error(
                "scheduler.run_error",
                task_id=run.task_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
        finally:
            clear_task()

    def _apply_outcome(self, run: _Run, outcome: RunOutcome) -> None:
        if self._runs.get(run.task_id) is not run:
            log.info("scheduler.stale_outcome_ignored", task_id=run.task_id, kind=outcome.kind)
            return
        del self._runs[run.task_id]
        run.reservation.release()
        task = self.store.get(run.task_id)

        if outcome.succeeded:
            self.store.transition(task.id, TaskStatus.RUNNING, TaskStatus.COMPLETED)
            task.result = outcome.result
            task.error = None
            self.events.publish(EventKind.TASK_COMPLETED, task.id, duration_s=outcome.duration_s)
            log.info("scheduler.task_completed", task_id=task.id, duration_s=round(outcome.duration_s, 3))
        elif outcome.timed_out:
            self._fail(task, outcome.error or "Task timed out", timed_out=True)
        elif task.retries_remaining > 0:
            self._schedule_retry(task, outcome.error)
        else:
            self._fail(task, outcome.error or "Task failed")
        self._kick()

    def _fail(self, task: Task, error: str, timed_out: bool = False) -> None:
        self.store.transition(task.id, TaskStatus.RUNNING, TaskStatus.FAILED)
        self._record_failure(task, error, timed_out)

    def _record_failure(self, task: Task, error: str, timed_out: bool = False) -> None:
        task.error = error
        kind = EventKind.TASK_TIMEOUT if timed_out else EventKind.TASK_FAILED
        self.events.publish(kind, task.id, error=error, attempts=task.attempts)
        if timed_out:
            log.warning("scheduler.task_timeout", task_id=task.id, timeout_s=task.timeout_s)
        else:
            log.error("scheduler.task_failed", task_id=task.id, error=error, attempts=task.attempts)

    def _schedule_retry(self, task: Task, error: Optional[str]) -> None:
        """Linear backoff: delay = retry_delay × retries used so far."""
        task.retries_remaining -= 1
        delay = task.retry_delay_s * (task.max_retries - task.retries_remaining)
        task.error = error
        self.store.transition(task.id, TaskStatus.RUNNING, TaskStatus.PENDING)
        due_at = task.retry_at = utcnow() + timedelta(seconds=delay)

        loop = asyncio.get_running_loop()
        timer: Optional[asyncio.TimerHandle] = None

        def _due() -> None:
            self._timers.discard(timer)
            # loop timers may fire a hair before the wall clock reaches retry_at
            if task.retry_at == due_at:
                task.retry_at = None
            self._kick()

        timer = loop.call_later(delay, _due)
        self._timers.add(timer)
        self.events.publish(
            EventKind.TASK_RETRY,
            task.id,
            delay_s=delay,
            retries_remaining=task.retries_remaining,
            error=error,
        )
        log.warning(
            "scheduler.task_retry",
            task_id=task.id,
            delay_s=delay,
            retries_remaining=task.retries_remaining,
            error=error,
        )

    def _detach(self, task_id: str) -> None:
        """Release and abandon the live run of task_id, if it has one."""
        run = self._runs.pop(task_id, None)
        if run is None:
            return
        run.reservation.release()
        self._abandon(run)

    def _abandon(self, run: _Run) -> None:
        handle = run.handle
        if handle is None or handle.done() or handle is asyncio.current_task():
            return
        handle.cancel()
        self._zombies.add(handle)
        handle.add_done_callback(self._zombies.discard)

    def handle_timeout(self, task_id: str) -> bool:
        """
        Fail an overrun RUNNING task. Idempotent: returns False (and does
        nothing) if the task is no longer running.
        """
        if task_id not in self.store:
            return False
        task = self.store.get(task_id)
        if task.status is not TaskStatus.RUNNING:
            return False
        self._detach(task_id)
        self._fail(task, f"Task {task_id} timed out after {task.timeout_s}s", timed_out=True)
        self._kick()
        return True

    # ── Task control ──────────────────────────────────────────────────────────

    def pause_task(self, task_id: str) -> Task:
        task = self.store.get(task_id)
        if task.status is TaskStatus.RUNNING:
            self._detach(task_id)
        self.store.transition(task_id, (TaskStatus.PENDING, TaskStatus.RUNNING), TaskStatus.PAUSED)
        self.events.publish(EventKind.TASK_PAUSED, task_id)
        log.info("scheduler.task_paused", task_id=task_id)
        self._kick()
        return task

    def resume_task(self, task_id: str) -> Task:
        task = self.store.transition(task_id, TaskStatus.PAUSED, TaskStatus.PENDING)
        self.events.publish(EventKind.TASK_RESUMED, task_id)
        log.info("scheduler.task_resumed", task_id=task_id)
        self._kick()
        return task

    def cancel_task(self, task_id: str) -> Task:
        task = self.store.get(task_id)
        if task.status.is_terminal:
            raise InvalidStateError(task_id, task.status.value)
        if task.status is TaskStatus.RUNNING:
            self._detach(task_id)
        self.store.transition(
            task_id,
            (TaskStatus.PENDING, TaskStatus.RUNNING, TaskStatus.PAUSED),
            TaskStatus.CANCELLED,
        )
        self.events.publish(EventKind.TASK_CANCELLED, task_id)
        log.info("scheduler.task_cancelled", task_id=task_id)
        self._kick()
        return task

    async def delete_task(self, task_id: str) -> Task:
        """Remove a task from the store and release its schedules."""
        task = self.store.get(task_id)
        if task.status is TaskStatus.RUNNING:
            self._detach(task_id)
        self.store.delete(task_id)
        removed = await self.schedules.remove_for_task(task_id)
        self.events.publish(EventKind.TASK_DELETED, task_id, schedules_removed=len(removed))
        log.info("scheduler.task_deleted", task_id=task_id, schedules_removed=len(removed))
        self._kick()
        return task

    def purge_tasks(self, older_than_s: float = 0.0) -> list[str]:
        purged = self.store.purge(older_than_s)
        if purged:
            log.info("scheduler.tasks_purged", count=len(purged))
        return purged

    def pause_scheduler(self) -> None:
        self._paused = True
        self.events.publish(EventKind.SCHEDULER_PAUSED)
        log.info("scheduler.paused")

    def resume_scheduler(self) -> None:
        self._paused = False
        self.events.publish(EventKind.SCHEDULER_RESUMED)
        log.info("scheduler.resumed")
        self._kick()

    # ── Queries ───────────────────────────────────────────────────────────────

    def get_task(self, task_id: str) -> Task:
        return self.store.get(task_id)

    def list_tasks(
        self,
        status: Union[TaskStatus, str, None] = None,
        executor: Optional[str] = None,
        priority: Union[TaskPriority, str, None] = None,
        type: Optional[str] = None,
    ) -> list[Task]:
        try:
            status = TaskStatus(status) if status is not None else None
            priority = TaskPriority(priority) if priority is not None else None
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return self.store.list(status=status, executor=executor, priority=priority, type=type)

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def zombie_count(self) -> int:
        return sum(1 for h in self._zombies if not h.done())

    def subscribe(self, maxsize: Optional[int] = None) -> asyncio.Queue[SchedulerEvent]:
        return self.events.subscribe(maxsize)

    def unsubscribe(self, queue: asyncio.Queue[SchedulerEvent]) -> bool:
        return self.events.unsubscribe(queue)

    def get_statistics(self) -> dict[str, Any]:
        m = compute_metrics(self.store.list(), window_s=self._window_s)
        return {
            "total": m.total,
            "pending": m.pending,
            "running": m.running,
            "paused": m.paused,
            "completed": m.completed,
            "failed": m.failed,
            "cancelled": m.cancelled,
            "average_execution_time_s": m.average_execution_time_s,
            "throughput": m.throughput,
            "zombies": self.zombie_count,
            "scheduler_paused": self._paused,
            "strategy": self._strategy_name,
            "max_concurrent_tasks": self._max_concurrent,
        }

    def health_check(self) -> dict[str, Any]:
        try:
            details = {
                "running": self._running,
                "tasks": len(self.store),
                "schedules": len(self.schedules),
                "executors": self.registry.snapshot(),
                "monitoring": self.monitor.active,
                "monitor_errors": self.monitor.errors,
                "events_dropped": self.events.dropped,
                "statistics": self.get_statistics(),
            }
        except Exception as e:
            log.error("scheduler.health_check_failed", error=str(e), exc_info=True)
            return {"status": "unhealthy", "timestamp": utcnow().isoformat(), "error": str(e)}
        return {"status": "healthy", "timestamp": utcnow().isoformat(), "details": details}


__all__ = ["TaskScheduler"]
