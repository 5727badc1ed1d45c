"""Tests for src/core/vesting/invariants.py: ledger invariant checkers."""

from dataclasses import replace

from src.core.vesting.invariants import INVARIANT_REGISTRY, check_all
from src.core.vesting.math import MAX_AMOUNT, MAX_TIMESTAMP
from src.core.vesting.state import initial_state
from src.core.vesting.store import LockStore
from src.core.vesting.types import LedgerState, Lock

T = 1_700_000_000
ALICE = "0x" + "a1" * 48


def _state(now: int = T, total_locked: int | None = None, **lock_kwargs) -> LedgerState:
    base = dict(total_amount=1000, released_amount=0, start_time=T, duration=1000, cliff=0, revocable=True)
    base.update(lock_kwargs)
    lock = Lock(**base)
    # Bypass LockStore.insert so corrupt locks can be constructed.
    store = LockStore({ALICE: lock})
    if total_locked is None:
        total_locked = lock.total_amount - lock.released_amount
    return LedgerState(locks=store, total_locked=total_locked, now=now)


class TestRegistry:
    def test_initial_state_passes_all(self):
        assert check_all(initial_state()) == []

    def test_registry_size(self):
        assert len(INVARIANT_REGISTRY) == 8

    def test_valid_lock_passes_all(self):
        assert check_all(_state()) == []


class TestAmounts:
    def test_negative_total_locked(self):
        assert "inv_amounts_nonneg" in check_all(replace(initial_state(), total_locked=-1))

    def test_negative_released(self):
        assert "inv_amounts_nonneg" in check_all(_state(released_amount=-5))

    def test_released_above_total(self):
        violations = check_all(_state(now=T + 5000, released_amount=1001))
        assert "inv_released_le_total" in violations

    def test_released_above_vested(self):
        violations = check_all(_state(now=T + 100, released_amount=500))
        assert "inv_released_le_vested" in violations

    def test_released_equal_vested_passes(self):
        assert check_all(_state(now=T + 500, released_amount=500)) == []


class TestConservation:
    def test_total_locked_mismatch(self):
        assert "inv_total_locked_conservation" in check_all(_state(total_locked=999))

    def test_total_locked_bounded(self):
        s = _state(total_amount=MAX_AMOUNT + 1)
        assert "inv_total_locked_bounded" in check_all(s)


class TestSchedule:
    def test_zero_duration(self):
        assert "inv_schedule_valid" in check_all(_state(duration=0))

    def test_cliff_past_duration(self):
        assert "inv_schedule_valid" in check_all(_state(cliff=1001))

    def test_end_time_out_of_domain(self):
        assert "inv_schedule_valid" in check_all(_state(start_time=MAX_TIMESTAMP))


class TestRevocation:
    def test_revoked_requires_revocable(self):
        s = _state(revocable=False, revoked=True, revoked_at=T)
        assert "inv_revoked_implies_revocable" in check_all(s)

    def test_revoked_at_set_without_revoke(self):
        assert "inv_revoked_at_consistent" in check_all(_state(revoked_at=T))

    def test_revoked_in_the_future(self):
        s = _state(now=T, revoked=True, revoked_at=T + 1)
        assert "inv_revoked_at_consistent" in check_all(s)

    def test_revoked_lock_passes(self):
        s = _state(now=T + 300, total_amount=300, revoked=True, revoked_at=T + 300)
        assert check_all(s) == []
