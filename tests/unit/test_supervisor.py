"""
tests/unit/test_supervisor.py — Execution Supervisor + Handler Registry Tests

Covers:
  - RunOutcome for success / failure / timeout
  - cancellation of the supervising coroutine is re-raised
  - HandlerRegistry dispatch by task.type, decorator form, duplicates,
    unknown types, built-in echo / sleep / fail handlers
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from edgesched.exceptions import ExecutionError, ValidationError
from edgesched.handlers import HandlerRegistry
from edgesched.scheduler.supervisor import ExecutionSupervisor
from edgesched.scheduler.types import Task, TaskPriority


def _make_task(type: str = "echo", timeout_s: float = 1.0, **params) -> Task:
    return Task(
        id="task_1",
        name="t",
        type=type,
        priority=TaskPriority.NORMAL,
        executor="local",
        timeout_s=timeout_s,
        max_retries=0,
        retry_delay_s=1.0,
        parameters=params,
    )


# ─────────────────────────────────────────────────────────────────────────────
# ExecutionSupervisor
# ─────────────────────────────────────────────────────────────────────────────

class TestSupervisor:

    @pytest.mark.asyncio
    async def test_success(self):
        runner = AsyncMock(return_value={"ok": True})
        outcome = await ExecutionSupervisor(runner).run(_make_task())
        assert outcome.succeeded
        assert outcome.result == {"ok": True}
        assert outcome.error is None
        runner.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_captured(self):
        runner = AsyncMock(side_effect=ValueError("bad input"))
        outcome = await ExecutionSupervisor(runner).run(_make_task())
        assert outcome.kind == "failure"
        assert outcome.error == "ValueError: bad input"

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def slow(task):
            await asyncio.sleep(5)

        outcome = await ExecutionSupervisor(slow).run(_make_task(timeout_s=0.05))
        assert outcome.timed_out
        assert "timed out" in outcome.error
        assert outcome.duration_s < 1.0

    @pytest.mark.asyncio
    async def test_outer_cancel_reraised(self):
        started = asyncio.Event()

        async def slow(task):
            started.set()
            await asyncio.sleep(5)

        handle = asyncio.create_task(ExecutionSupervisor(slow).run(_make_task(timeout_s=10)))
        await started.wait()
        handle.cancel()
        with pytest.raises(asyncio.CancelledError):
            await handle


# ─────────────────────────────────────────────────────────────────────────────
# HandlerRegistry
# ─────────────────────────────────────────────────────────────────────────────

class TestHandlerRegistry:

    @pytest.mark.asyncio
    async def test_dispatch_by_type(self):
        reg = HandlerRegistry()

        @reg.handler("double")
        async def double(task):
            return task.parameters["n"] * 2

        assert "double" in reg
        assert await reg(_make_task(type="double", n=21)) == 42

    def test_duplicate_rejected(self):
        reg = HandlerRegistry()
        reg.register("x", AsyncMock())
        with pytest.raises(ValidationError):
            reg.register("x", AsyncMock())

    @pytest.mark.asyncio
    async def test_unknown_type(self):
        with pytest.raises(ExecutionError, match="Unknown task type: nope"):
            await HandlerRegistry()(_make_task(type="nope"))

    def test_builtins(self):
        assert HandlerRegistry.with_builtins().types() == ["echo", "fail", "sleep"]

    @pytest.mark.asyncio
    async def test_builtin_echo(self):
        reg = HandlerRegistry.with_builtins()
        assert await reg(_make_task(type="echo", a=1)) == {"a": 1}

    @pytest.mark.asyncio
    async def test_builtin_sleep(self):
        reg = HandlerRegistry.with_builtins()
        assert await reg(_make_task(type="sleep", seconds=0.01)) == {"slept_s": 0.01}

    @pytest.mark.asyncio
    async def test_builtin_fail_through_supervisor(self):
        sup = ExecutionSupervisor(HandlerRegistry.with_builtins())
        outcome = await sup.run(_make_task(type="fail", message="boom"))
        assert outcome.error == "ExecutionError: boom"
