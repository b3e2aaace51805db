"""
scheduler/strategies.py — Dispatch Strategies

Each strategy is a pure function:

    strategy(pending: Sequence[Task], registry: ExecutorRegistry) -> Optional[str]

`pending` is the set of *eligible* pending tasks (already filtered for
retry delays). The return value is the id of the task to dispatch next,
or None when nothing should start. Strategies never mutate tasks or the
registry; the Scheduler Core applies the selection.

Every ordering is total: ties always fall back to FIFO (created_at, then
store insertion sequence), so the same inputs give the same answer.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from edgesched.exceptions import ValidationError
from edgesched.scheduler.registry import ExecutorRegistry
from edgesched.scheduler.types import Task

Strategy = Callable[[Sequence[Task], ExecutorRegistry], Optional[str]]


def fifo_strategy(pending: Sequence[Task], registry: ExecutorRegistry) -> Optional[str]:
    """Oldest task first."""
    if not pending:
        return None
    return min(pending, key=Task.fifo_key).id


def priority_strategy(pending: Sequence[Task], registry: ExecutorRegistry) -> Optional[str]:
    """critical > high > normal > low, FIFO within a level."""
    if not pending:
        return None
    return min(pending, key=lambda t: (t.priority.rank, t.fifo_key())).id


def deadline_strategy(pending: Sequence[Task], registry: ExecutorRegistry) -> Optional[str]:
    """
    Earliest deadline first. Tasks without a deadline only come up once no
    deadline-bearing task is pending, and then in FIFO order.
    """
    if not pending:
        return None
    with_deadline = [t for t in pending if t.deadline is not None]
    if with_deadline:
        return min(with_deadline, key=lambda t: (t.deadline, t.fifo_key())).id
    return min(pending, key=Task.fifo_key).id


def resource_based_strategy(pending: Sequence[Task], registry: ExecutorRegistry) -> Optional[str]:
    """First task (FIFO) whose executor has a free slot; None if no executor does."""
    for task in sorted(pending, key=Task.fifo_key):
        if registry.has_spare_capacity(task.executor):
            return task.id
    return None


STRATEGIES: dict[str, Strategy] = {
    "fifo": fifo_strategy,
    "priority": priority_strategy,
    "deadline": deadline_strategy,
    "resource_based": resource_based_strategy,
}


def get_strategy(name: str) -> Strategy:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValidationError(
            f"Unknown scheduling strategy '{name}'. Known: {sorted(STRATEGIES)}"
        ) from None
