"""
edgesched — Bounded-concurrency task scheduler for asyncio services.

Public API:
    from edgesched import TaskScheduler, TaskSpec, ScheduleSpec, Executor

    scheduler = TaskScheduler(strategy="priority")
    scheduler.register_executor(Executor(id="local", capacity=4))
    await scheduler.start()
"""

from edgesched.scheduler import (
    Executor,
    ExecutorRegistry,
    ScheduleSpec,
    Task,
    TaskPriority,
    TaskScheduler,
    TaskSpec,
    TaskStatus,
)
from edgesched.handlers import HandlerRegistry

__version__ = "0.1.0"

__all__ = [
    "TaskScheduler",
    "TaskSpec",
    "ScheduleSpec",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Executor",
    "ExecutorRegistry",
    "HandlerRegistry",
]
