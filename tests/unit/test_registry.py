"""
tests/unit/test_registry.py — Executor Registry Unit Tests

Covers:
  - register / unregister / get / find / list
  - capabilities_satisfy, has_spare_capacity, total_running, snapshot
  - reserve(): CapacityError at capacity, running counter bookkeeping
  - Reservation: idempotent release, context-manager release on error,
    reserve_count == release_count after every path
"""

from __future__ import annotations

import pytest

from edgesched.exceptions import CapacityError, InvalidStateError, NotFoundError, ValidationError
from edgesched.scheduler.registry import ExecutorRegistry, Reservation
from edgesched.scheduler.types import Executor


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _make_registry(*executors: Executor) -> ExecutorRegistry:
    reg = ExecutorRegistry()
    for ex in executors or (Executor(id="local", capacity=2, capabilities={"compute"}),):
        reg.register(ex)
    return reg


# ─────────────────────────────────────────────────────────────────────────────
# Registration
# ─────────────────────────────────────────────────────────────────────────────

class TestRegistration:

    def test_register_and_get(self):
        reg = _make_registry()
        assert reg.get("local").capacity == 2
        assert "local" in reg
        assert len(reg) == 1

    def test_duplicate_id_rejected(self):
        reg = _make_registry()
        with pytest.raises(ValidationError):
            reg.register(Executor(id="local", capacity=5))

    def test_get_unknown_raises(self):
        reg = _make_registry()
        with pytest.raises(NotFoundError):
            reg.get("nope")

    def test_find_unknown_returns_none(self):
        assert _make_registry().find("nope") is None

    def test_zero_capacity_rejected(self):
        with pytest.raises(ValueError):
            Executor(id="bad", capacity=0)

    def test_name_defaults_to_id(self):
        assert Executor(id="edge", capacity=1).name == "edge"

    def test_unregister_idle(self):
        reg = _make_registry()
        reg.unregister("local")
        assert "local" not in reg

    def test_unregister_busy_rejected(self):
        reg = _make_registry()
        reg.reserve("local")
        with pytest.raises(InvalidStateError):
            reg.unregister("local")

    def test_list_keeps_registration_order(self):
        reg = _make_registry(Executor(id="a", capacity=1), Executor(id="b", capacity=1))
        assert [e.id for e in reg.list()] == ["a", "b"]


# ─────────────────────────────────────────────────────────────────────────────
# Capability / capacity queries
# ─────────────────────────────────────────────────────────────────────────────

class TestQueries:

    def test_capabilities_satisfy(self):
        reg = _make_registry(Executor(id="cloud", capacity=1, capabilities={"compute", "ml"}))
        assert reg.capabilities_satisfy("cloud", ["ml"])
        assert reg.capabilities_satisfy("cloud", [])
        assert not reg.capabilities_satisfy("cloud", ["iot"])
        assert not reg.capabilities_satisfy("missing", [])

    def test_has_spare_capacity(self):
        reg = _make_registry(Executor(id="one", capacity=1))
        assert reg.has_spare_capacity("one")
        reg.reserve("one")
        assert not reg.has_spare_capacity("one")
        assert not reg.has_spare_capacity("missing")

    def test_total_running_and_snapshot(self):
        reg = _make_registry(Executor(id="a", capacity=3), Executor(id="b", capacity=3))
        reg.reserve("a")
        reg.reserve("b")
        reg.reserve("b")
        assert reg.total_running == 3
        snap = {row["id"]: row for row in reg.snapshot()}
        assert snap["b"]["running"] == 2
        assert snap["a"]["capacity"] == 3


# ─────────────────────────────────────────────────────────────────────────────
# Reservations
# ─────────────────────────────────────────────────────────────────────────────

class TestReservations:

    def test_reserve_increments_running(self):
        reg = _make_registry()
        res = reg.reserve("local")
        assert isinstance(res, Reservation)
        assert res.executor_id == "local"
        assert reg.get("local").running == 1

    def test_reserve_at_capacity_raises(self):
        reg = _make_registry()
        reg.reserve("local")
        reg.reserve("local")
        with pytest.raises(CapacityError):
            reg.reserve("local")
        assert reg.get("local").running == 2

    def test_reserve_unknown_raises(self):
        with pytest.raises(NotFoundError):
            _make_registry().reserve("nope")

    def test_release_is_idempotent(self):
        reg = _make_registry()
        res = reg.reserve("local")
        assert res.release() is True
        assert res.release() is False
        ex = reg.get("local")
        assert ex.running == 0
        assert ex.reserve_count == ex.release_count == 1

    def test_context_manager_releases_on_error(self):
        reg = _make_registry()
        with pytest.raises(RuntimeError):
            with reg.reserve("local"):
                raise RuntimeError("body blew up")
        ex = reg.get("local")
        assert ex.running == 0
        assert ex.reserve_count == ex.release_count

    def test_early_release_then_scope_exit(self):
        reg = _make_registry()
        with reg.reserve("local") as res:
            res.release()
            assert res.released
        ex = reg.get("local")
        assert ex.running == 0
        assert ex.release_count == 1
