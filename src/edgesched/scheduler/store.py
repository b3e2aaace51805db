"""
scheduler/store.py — Task Store

Owns every Task record and its status. Pure data + invariant enforcement:
no timers, no asyncio, no dispatch policy.

Partitions
----------
Each task id lives in exactly one of four partitions, and the partition
always agrees with task.status:

    pending   ← TaskStatus.PENDING
    running   ← TaskStatus.RUNNING
    paused    ← TaskStatus.PAUSED
    terminal  ← COMPLETED | FAILED | CANCELLED

The only way to change a status is transition(id, expected, to), which
checks the guard and the legal-move table in one step. Two callers racing
to dispatch the same task cannot both win: the second sees RUNNING and
gets InvalidStateError.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from edgesched.exceptions import InvalidStateError, NotFoundError, QueueFullError, ValidationError
from edgesched.observability.logger import get_logger
from edgesched.scheduler.registry import ExecutorRegistry
from edgesched.scheduler.types import (
    Task,
    TaskPriority,
    TaskSpec,
    TaskStatus,
    generate_task_id,
    utcnow,
)

log = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Legal moves
# ─────────────────────────────────────────────────────────────────────────────

_ALLOWED: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({
        TaskStatus.RUNNING,
        TaskStatus.PAUSED,
        TaskStatus.CANCELLED,
        TaskStatus.FAILED,       # executor vanished
    }),
    TaskStatus.RUNNING: frozenset({
        TaskStatus.COMPLETED,
        TaskStatus.FAILED,
        TaskStatus.PENDING,      # retry
        TaskStatus.PAUSED,
        TaskStatus.CANCELLED,
    }),
    TaskStatus.PAUSED: frozenset({TaskStatus.PENDING, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}

_PARTITION = {
    TaskStatus.PENDING: "pending",
    TaskStatus.RUNNING: "running",
    TaskStatus.PAUSED: "paused",
    TaskStatus.COMPLETED: "terminal",
    TaskStatus.FAILED: "terminal",
    TaskStatus.CANCELLED: "terminal",
}


@dataclass(frozen=True)
class TaskDefaults:
    """Values applied when a TaskSpec leaves them unset."""
    timeout_s: float = 300.0
    max_retries: int = 3
    retry_delay_s: float = 5.0


StatusGuard = Union[TaskStatus, Iterable[TaskStatus]]


class TaskStore:

    def __init__(
        self,
        registry: ExecutorRegistry,
        defaults: Optional[TaskDefaults] = None,
        max_tasks: Optional[int] = None,
    ) -> None:
        self._registry = registry
        self._defaults = defaults or TaskDefaults()
        self._max_tasks = max_tasks
        self._tasks: dict[str, Task] = {}
        # dicts keep insertion order, which is what FIFO scans rely on
        self._partitions: dict[str, dict[str, None]] = {
            "pending": {},
            "running": {},
            "paused": {},
            "terminal": {},
        }
        self._seq = itertools.count(1)

    # ── Create ────────────────────────────────────────────────────────────────

    def create(self, spec: TaskSpec, origin_id: Optional[str] = None) -> Task:
        """Validate spec against the registry and store a new pending Task."""
        task_id = spec.id or generate_task_id()
        if task_id in self._tasks:
            raise ValidationError(f"Task id '{task_id}' already exists")
        if spec.executor not in self._registry:
            raise ValidationError(f"Invalid executor: {spec.executor}")
        if not self._registry.capabilities_satisfy(spec.executor, spec.requires):
            missing = set(spec.requires) - self._registry.get(spec.executor).capabilities
            raise ValidationError(
                f"Executor '{spec.executor}' lacks required capabilities: {sorted(missing)}"
            )
        if self._max_tasks is not None and len(self._tasks) >= self._max_tasks:
            raise QueueFullError(f"Task store is full ({self._max_tasks} tasks)")

        d = self._defaults
        max_retries = spec.max_retries if spec.max_retries is not None else d.max_retries
        task = Task(
            id=task_id,
            name=spec.name,
            type=spec.type,
            priority=spec.priority,
            executor=spec.executor,
            timeout_s=spec.timeout_s if spec.timeout_s is not None else d.timeout_s,
            max_retries=max_retries,
            retry_delay_s=spec.retry_delay_s if spec.retry_delay_s is not None else d.retry_delay_s,
            parameters=dict(spec.parameters),
            resources=dict(spec.resources),
            requires=frozenset(spec.requires),
            deadline=spec.deadline,
            metadata=dict(spec.metadata),
            retries_remaining=max_retries,
            origin_id=origin_id,
            seq=next(self._seq),
        )
        self._tasks[task_id] = task
        self._partitions["pending"][task_id] = None
        return task

    # ── Transition ────────────────────────────────────────────────────────────

    def transition(self, task_id: str, expected: StatusGuard, to: TaskStatus) -> Task:
        """
        Move task_id to `to` iff its current status is in `expected`.

        Raises NotFoundError for unknown ids and InvalidStateError when the
        guard does not match or the move is not in the legal table.
        """
        task = self.get(task_id)
        guard = {expected} if isinstance(expected, TaskStatus) else set(expected)
        current = task.status
        if current not in guard or to not in _ALLOWED[current]:
            raise InvalidStateError(
                task_id,
                current.value,
                f"Task '{task_id}' is '{current.value}', cannot move to '{to.value}'",
            )

        now = utcnow()
        del self._partitions[_PARTITION[current]][task_id]
        self._partitions[_PARTITION[to]][task_id] = None
        task.status = to

        if to is TaskStatus.RUNNING:
            task.started_at = now
            task.completed_at = None
            task.retry_at = None
            task.attempts += 1
        elif to.is_terminal:
            task.completed_at = now

        log.debug(
            "store.transition",
            task_id=task_id,
            from_status=current.value,
            to_status=to.value,
        )
        return task

    # ── Queries ───────────────────────────────────────────────────────────────

    def get(self, task_id: str) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise NotFoundError("task", task_id) from None

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def list(
        self,
        status: Optional[TaskStatus] = None,
        executor: Optional[str] = None,
        priority: Optional[TaskPriority] = None,
        type: Optional[str] = None,
        origin_id: Optional[str] = None,
    ) -> list[Task]:
        """Tasks matching every given filter, in creation order."""
        if status is not None:
            source = (self._tasks[i] for i in self._partitions[_PARTITION[status]])
        else:
            source = iter(self._tasks.values())
        out = []
        for t in source:
            if status is not None and t.status is not status:
                continue
            if executor is not None and t.executor != executor:
                continue
            if priority is not None and t.priority is not priority:
                continue
            if type is not None and t.type != type:
                continue
            if origin_id is not None and t.origin_id != origin_id:
                continue
            out.append(t)
        return sorted(out, key=Task.fifo_key)

    def pending(self) -> list[Task]:
        return [self._tasks[i] for i in self._partitions["pending"]]

    def running(self) -> list[Task]:
        return [self._tasks[i] for i in self._partitions["running"]]

    def eligible_pending(self, now: Optional[datetime] = None) -> list[Task]:
        """Pending tasks not waiting out a retry delay, oldest first."""
        now = now or utcnow()
        ready = [t for t in self.pending() if t.retry_at is None or t.retry_at <= now]
        return sorted(ready, key=Task.fifo_key)

    @property
    def running_count(self) -> int:
        return len(self._partitions["running"])

    def counts(self) -> dict[str, int]:
        counts = {s.value: 0 for s in TaskStatus}
        for t in self._tasks.values():
            counts[t.status.value] += 1
        return counts

    # ── Removal ───────────────────────────────────────────────────────────────

    def delete(self, task_id: str) -> Task:
        task = self.get(task_id)
        for members in self._partitions.values():
            members.pop(task_id, None)
        del self._tasks[task_id]
        return task

    def purge(self, older_than_s: float = 0.0, now: Optional[datetime] = None) -> list[str]:
        """Delete terminal tasks that finished more than older_than_s ago."""
        cutoff = (now or utcnow()) - timedelta(seconds=older_than_s)
        doomed = [
            i for i in self._partitions["terminal"]
            if self._tasks[i].completed_at is not None and self._tasks[i].completed_at <= cutoff
        ]
        for i in doomed:
            self.delete(i)
        return doomed
