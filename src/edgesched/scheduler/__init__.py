"""
scheduler/ — Task Scheduler

Public API:
    from edgesched.scheduler import TaskScheduler, TaskSpec, ScheduleSpec

Component overview:
    TaskStore            Task records, status partitions, guarded transitions
    ExecutorRegistry     Executors, capabilities, capacity reservations
    strategies           fifo / priority / deadline / resource_based selection
    ExecutionSupervisor  Runs one body under its timeout
    ScheduleManager      Cron and interval triggers
    Monitor              Timeout sweep, metrics, periodic dispatch
    TaskScheduler        Dispatch loop and lifecycle operations
"""

from edgesched.scheduler.core import TaskScheduler
from edgesched.scheduler.events import EventKind, SchedulerEvent
from edgesched.scheduler.registry import ExecutorRegistry, Reservation
from edgesched.scheduler.store import TaskDefaults, TaskStore
from edgesched.scheduler.triggers import Schedule
from edgesched.scheduler.types import (
    Executor,
    ScheduleSpec,
    Task,
    TaskPriority,
    TaskSpec,
    TaskStatus,
)

__all__ = [
    "TaskScheduler",
    "TaskStore",
    "TaskDefaults",
    "ExecutorRegistry",
    "Reservation",
    "Schedule",
    "EventKind",
    "SchedulerEvent",
    "Executor",
    "ScheduleSpec",
    "Task",
    "TaskPriority",
    "TaskSpec",
    "TaskStatus",
]
