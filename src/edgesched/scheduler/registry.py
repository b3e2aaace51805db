"""
scheduler/registry.py — Executor Registry

Tracks the known execution targets and their running-task counts.

Capacity is handed out as Reservation objects rather than raw
increment/decrement calls:

    reservation = registry.reserve("edge")     # running += 1
    with reservation:
        await run_body()
    # running -= 1 here, on every exit path

Reservation.release() is idempotent, so the core can release early
(pause / cancel / timeout) and the scoped exit stays a no-op. That is what
keeps reserve_count == release_count for every executor.
"""

from __future__ import annotations

from typing import Iterable, Optional

from edgesched.exceptions import CapacityError, InvalidStateError, NotFoundError, ValidationError
from edgesched.observability.logger import get_logger
from edgesched.scheduler.types import Executor

log = get_logger(__name__)


class Reservation:
    """One slot on one executor. Released at most once."""

    __slots__ = ("_executor", "_released")

    def __init__(self, executor: Executor) -> None:
        self._executor = executor
        self._released = False

    @property
    def executor_id(self) -> str:
        return self._executor.id

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """Give the slot back. Returns False if it was already released."""
        if self._released:
            return False
        self._released = True
        self._executor.running -= 1
        self._executor.release_count += 1
        return True

    def __enter__(self) -> "Reservation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "held"
        return f"<Reservation {self._executor.id} {state}>"


class ExecutorRegistry:
    """
    Registry of executors keyed by id.

    Usage:
        registry = ExecutorRegistry()
        registry.register(Executor(id="edge", capacity=50, capabilities={"iot"}))
        if registry.has_spare_capacity("edge"):
            res = registry.reserve("edge")
    """

    def __init__(self) -> None:
        self._executors: dict[str, Executor] = {}

    # ── Registration ──────────────────────────────────────────────────────────

    def register(self, executor: Executor) -> Executor:
        if executor.id in self._executors:
            raise ValidationError(f"Executor '{executor.id}' is already registered")
        self._executors[executor.id] = executor
        log.info(
            "registry.executor_registered",
            executor=executor.id,
            capacity=executor.capacity,
            capabilities=sorted(executor.capabilities),
        )
        return executor

    def unregister(self, executor_id: str) -> Executor:
        executor = self.get(executor_id)
        if executor.running:
            raise InvalidStateError(
                executor_id,
                "busy",
                f"Executor '{executor_id}' still has {executor.running} running task(s)",
            )
        del self._executors[executor_id]
        log.info("registry.executor_unregistered", executor=executor_id)
        return executor

    # ── Queries ───────────────────────────────────────────────────────────────

    def get(self, executor_id: str) -> Executor:
        try:
            return self._executors[executor_id]
        except KeyError:
            raise NotFoundError("executor", executor_id) from None

    def find(self, executor_id: str) -> Optional[Executor]:
        return self._executors.get(executor_id)

    def __contains__(self, executor_id: object) -> bool:
        return executor_id in self._executors

    def __len__(self) -> int:
        return len(self._executors)

    def list(self) -> list[Executor]:
        return list(self._executors.values())

    def capabilities_satisfy(self, executor_id: str, required: Iterable[str]) -> bool:
        executor = self._executors.get(executor_id)
        if executor is None:
            return False
        return set(required) <= executor.capabilities

    def has_spare_capacity(self, executor_id: str) -> bool:
        executor = self._executors.get(executor_id)
        return executor is not None and executor.running < executor.capacity

    @property
    def total_running(self) -> int:
        return sum(e.running for e in self._executors.values())

    # ── Capacity accounting ───────────────────────────────────────────────────

    def reserve(self, executor_id: str) -> Reservation:
        """Take one slot on executor_id. Raises CapacityError when full."""
        executor = self.get(executor_id)
        if executor.running >= executor.capacity:
            raise CapacityError(
                f"Executor '{executor_id}' is at capacity ({executor.capacity})"
            )
        executor.running += 1
        executor.reserve_count += 1
        return Reservation(executor)

    def snapshot(self) -> list[dict]:
        return [
            {
                "id": e.id,
                "name": e.name,
                "kind": e.kind,
                "capacity": e.capacity,
                "running": e.running,
                "capabilities": sorted(e.capabilities),
            }
            for e in self._executors.values()
        ]
