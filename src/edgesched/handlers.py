"""
handlers.py — Task Body Handlers

The scheduler treats a task body as an opaque coroutine. HandlerRegistry
is the default runner: it maps task.type to an async callable and calls it.

Usage:
    handlers = HandlerRegistry.with_builtins()

    @handlers.handler("resize_image")
    async def resize(task):
        ...
        return {"width": 640}

    scheduler = TaskScheduler(registry, runner=handlers)
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from edgesched.exceptions import ExecutionError, ValidationError
from edgesched.scheduler.types import Task

Handler = Callable[[Task], Awaitable[Any]]


class HandlerRegistry:

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, task_type: str, fn: Handler) -> None:
        if task_type in self._handlers:
            raise ValidationError(f"Handler for '{task_type}' already registered.")
        self._handlers[task_type] = fn

    def handler(self, task_type: str) -> Callable[[Handler], Handler]:
        """Decorator form of register()."""
        def _wrap(fn: Handler) -> Handler:
            self.register(task_type, fn)
            return fn
        return _wrap

    def types(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, task_type: object) -> bool:
        return task_type in self._handlers

    async def __call__(self, task: Task) -> Any:
        fn = self._handlers.get(task.type)
        if fn is None:
            raise ExecutionError(f"Unknown task type: {task.type}")
        return await fn(task)

    @classmethod
    def with_builtins(cls) -> "HandlerRegistry":
        reg = cls()
        reg.register("echo", _echo)
        reg.register("sleep", _sleep)
        reg.register("fail", _fail)
        return reg


# ─────────────────────────────────────────────────────────────────────────────
# Built-ins
# ─────────────────────────────────────────────────────────────────────────────

async def _echo(task: Task) -> Any:
    return dict(task.parameters)


async def _sleep(task: Task) -> Any:
    seconds = float(task.parameters.get("seconds", 1.0))
    await asyncio.sleep(seconds)
    return {"slept_s": seconds}


async def _fail(task: Task) -> Any:
    raise ExecutionError(task.parameters.get("message", "Task failed on purpose"))
