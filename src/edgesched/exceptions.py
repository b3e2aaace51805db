"""
exceptions.py — EdgeSched Unified Error Hierarchy

All scheduler-specific exceptions live here. Every layer raises typed
subclasses of SchedulerError — never bare Exception.

Import from here, not from individual modules:
    from edgesched.exceptions import NotFoundError, InvalidStateError

Hierarchy:
    SchedulerError
    ├── ValidationError      malformed task / schedule spec (no state change)
    ├── NotFoundError        unknown task, schedule or executor id
    ├── InvalidStateError    operation not allowed from the current status
    ├── QueueFullError       task store is at its configured max_tasks
    ├── CapacityError        internal — nothing dispatchable this cycle
    ├── ExecutionError       task body failed (recoverable via retry)
    └── TaskTimeoutError     task body exceeded its timeout (never retried)

Only the first four ever reach a caller. ExecutionError and
TaskTimeoutError are recorded on the task record and surfaced through
queries; CapacityError never leaves the dispatch loop.
"""

from __future__ import annotations


# ─────────────────────────────────────────────────────────────────────────────
# Root
# ─────────────────────────────────────────────────────────────────────────────

class SchedulerError(Exception):
    """Base class for all EdgeSched exceptions."""


# ─────────────────────────────────────────────────────────────────────────────
# Caller-facing
# ─────────────────────────────────────────────────────────────────────────────

class ValidationError(SchedulerError):
    """A task or schedule spec failed validation. Nothing was stored."""


class NotFoundError(SchedulerError):
    """Requested task, schedule or executor is not registered."""

    def __init__(self, kind: str, ident: str, message: str = "") -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(message or f"{kind.capitalize()} '{ident}' not found")


class InvalidStateError(SchedulerError):
    """The task's current status does not permit the requested operation."""

    def __init__(self, task_id: str, status: str, message: str = "") -> None:
        self.task_id = task_id
        self.status = status
        super().__init__(
            message or f"Task '{task_id}' cannot do that while '{status}'"
        )


class QueueFullError(SchedulerError):
    """The store already holds max_tasks records."""


# ─────────────────────────────────────────────────────────────────────────────
# Internal / recorded on the task
# ─────────────────────────────────────────────────────────────────────────────

class CapacityError(SchedulerError):
    """No executor slot for the selected task. Try again next cycle."""


class ExecutionError(SchedulerError):
    """The task body raised or reported a failure."""


class TaskTimeoutError(SchedulerError):
    """The task body did not finish within its timeout."""


__all__ = [
    "SchedulerError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateError",
    "QueueFullError",
    "CapacityError",
    "ExecutionError",
    "TaskTimeoutError",
]
