"""
scheduler/supervisor.py — Execution Supervisor

Runs one task body as a cancellable, time-bounded coroutine and turns
whatever happens into a RunOutcome. The supervisor never touches the
store or the registry; the Scheduler Core applies the outcome.

Race outcomes:
    body returns first  → RunOutcome(kind="success", result=...)
    body raises first   → RunOutcome(kind="failure", error="Type: msg")
    timeout first       → RunOutcome(kind="timeout"); the body is cancelled
                          by asyncio.wait_for (best effort, cooperative)

Cancellation of the supervising coroutine itself (pause / cancel / stop)
is re-raised, never converted into an outcome.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from edgesched.exceptions import TaskTimeoutError
from edgesched.observability.logger import get_logger
from edgesched.scheduler.types import Task

log = get_logger(__name__)

Runner = Callable[[Task], Awaitable[Any]]


@dataclass(frozen=True)
class RunOutcome:
    kind: str                     # "success" | "failure" | "timeout"
    result: Any = None
    error: Optional[str] = None
    duration_s: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.kind == "success"

    @property
    def timed_out(self) -> bool:
        return self.kind == "timeout"


class ExecutionSupervisor:

    def __init__(self, runner: Runner) -> None:
        self._runner = runner

    async def run(self, task: Task) -> RunOutcome:
        started = time.monotonic()
        try:
            result = await asyncio.wait_for(self._runner(task), timeout=task.timeout_s)
        except asyncio.TimeoutError:
            err = TaskTimeoutError(f"Task {task.id} timed out after {task.timeout_s}s")
            log.warning("supervisor.timeout", task_id=task.id, timeout_s=task.timeout_s)
            return RunOutcome(kind="timeout", error=str(err), duration_s=time.monotonic() - started)
        except asyncio.CancelledError:
            log.info("supervisor.cancelled", task_id=task.id)
            raise
        except Exception as e:
            err_text = f"{type(e).__name__}: {e}"
            log.warning("supervisor.body_failed", task_id=task.id, error=err_text)
            return RunOutcome(kind="failure", error=err_text, duration_s=time.monotonic() - started)
        return RunOutcome(kind="success", result=result, duration_s=time.monotonic() - started)
