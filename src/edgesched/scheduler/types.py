"""
scheduler/types.py — Scheduler Data Models

Shared types used across the task store, executor registry, dispatch
strategies, supervisor, triggers and monitor.

TaskSpec and ScheduleSpec are pydantic models: they are the validated
input boundary. Task and Executor are plain mutable dataclasses owned by
the store / registry and mutated only on the event loop thread.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_task_id() -> str:
    return f"task_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED})


class TaskPriority(str, Enum):
    """
    Dispatch priority. Only the priority strategy looks at it; every other
    strategy treats all levels alike.
    """
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """0 for critical … 3 for low, so ascending sort puts critical first."""
        return [TaskPriority.CRITICAL, TaskPriority.HIGH, TaskPriority.NORMAL, TaskPriority.LOW].index(self)


# ─────────────────────────────────────────────────────────────────────────────
# Input specs (validated)
# ─────────────────────────────────────────────────────────────────────────────


class TaskSpec(BaseModel):
    """
    What a caller submits to create_task(). Anything left as None is filled
    from the scheduler config (timeout, retries, retry delay).
    """
    id: Optional[str] = None
    name: str
    type: str = "compute"
    priority: TaskPriority = TaskPriority.NORMAL
    executor: str = "local"
    parameters: dict[str, Any] = Field(default_factory=dict)
    resources: dict[str, float] = Field(default_factory=dict)
    requires: list[str] = Field(default_factory=list)
    deadline: Optional[datetime] = None
    timeout_s: Optional[float] = None
    max_retries: Optional[int] = None
    retry_delay_s: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _non_empty_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Task name is required")
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def _lower_priority(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("deadline")
    @classmethod
    def _aware_deadline(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("timeout_s", "retry_delay_s")
    @classmethod
    def _positive_seconds(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("max_retries")
    @classmethod
    def _non_negative_retries(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("max_retries must be >= 0")
        return v


class ScheduleSpec(BaseModel):
    """A recurring trigger for one task: exactly one of cron / interval_ms."""
    cron: Optional[str] = None
    interval_ms: Optional[int] = None
    enabled: bool = True
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None

    @field_validator("interval_ms")
    @classmethod
    def _positive_interval(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("interval_ms must be > 0")
        return v

    @field_validator("start_at", "end_at")
    @classmethod
    def _aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def _one_trigger(self) -> "ScheduleSpec":
        if (self.cron is None) == (self.interval_ms is None):
            raise ValueError("exactly one of 'cron' or 'interval_ms' is required")
        if self.start_at and self.end_at and self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self


# ─────────────────────────────────────────────────────────────────────────────
# Runtime records
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class Task:
    id: str
    name: str
    type: str
    priority: TaskPriority
    executor: str
    timeout_s: float
    max_retries: int
    retry_delay_s: float
    parameters: dict[str, Any] = field(default_factory=dict)
    resources: dict[str, float] = field(default_factory=dict)
    requires: frozenset[str] = frozenset()
    deadline: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    status: TaskStatus = TaskStatus.PENDING
    retries_remaining: int = 0
    attempts: int = 0
    retry_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Any = None
    error: Optional[str] = None
    origin_id: Optional[str] = None
    seq: int = 0

    @property
    def execution_time_s(self) -> Optional[float]:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def fifo_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.seq)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view for transports and the CLI."""
        def _iso(dt: Optional[datetime]) -> Optional[str]:
            return dt.isoformat() if dt else None

        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "priority": self.priority.value,
            "executor": self.executor,
            "status": self.status.value,
            "parameters": self.parameters,
            "resources": self.resources,
            "requires": sorted(self.requires),
            "deadline": _iso(self.deadline),
            "timeout_s": self.timeout_s,
            "max_retries": self.max_retries,
            "retries_remaining": self.retries_remaining,
            "attempts": self.attempts,
            "created_at": _iso(self.created_at),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "result": self.result,
            "error": self.error,
            "origin_id": self.origin_id,
            "metadata": self.metadata,
        }


@dataclass
class Executor:
    """
    A named execution target. `running` is owned by ExecutorRegistry and
    only moves through reserve()/Reservation.release().
    """
    id: str
    capacity: int
    capabilities: frozenset[str] = frozenset()
    name: str = ""
    kind: str = "local"
    running: int = 0
    reserve_count: int = 0
    release_count: int = 0

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"Executor '{self.id}' capacity must be >= 1")
        self.capabilities = frozenset(self.capabilities)
        if not self.name:
            self.name = self.id

    @property
    def spare(self) -> int:
        return self.capacity - self.running
