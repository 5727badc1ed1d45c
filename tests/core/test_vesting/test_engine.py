"""Tests for src/core/vesting/engine.py: dispatch table + step function.

Tests cover known action sequences end-to-end through the engine.
"""

import pytest
from dataclasses import replace

from src.core.vesting import (
    Action,
    ActionParams,
    AlreadyRevoked,
    ClockRegression,
    DuplicateLock,
    Event,
    InvalidArgument,
    LedgerState,
    LockRevoked,
    NoLock,
    NothingToRelease,
    NotRevocable,
    Payee,
    VestingInvariantError,
    VestingOverflowError,
    initial_state,
    step,
    step_or_raise,
)
from src.core.vesting.math import MAX_AMOUNT, MAX_TIMESTAMP

T = 1_700_000_000
ALICE = "0x" + "a1" * 48
BOB = "0x" + "b2" * 48


def _create(
    state: LedgerState | None = None,
    beneficiary: str = ALICE,
    amount: int = 1000,
    start_time: int = T,
    duration: int = 1000,
    cliff: int = 100,
    revocable: bool = False,
    now: int = T,
) -> LedgerState:
    """Helper: accept a create_lock and return the post-state."""
    r = step(
        state or initial_state(),
        ActionParams(
            action=Action.CREATE_LOCK,
            beneficiary=beneficiary,
            amount=amount,
            start_time=start_time,
            duration=duration,
            cliff=cliff,
            revocable=revocable,
            now=now,
        ),
    )
    assert r.accepted, r.rejection
    return r.state


def _release(state: LedgerState, now: int, beneficiary: str = ALICE):
    return step(state, ActionParams(action=Action.RELEASE, beneficiary=beneficiary, now=now))


def _revoke(state: LedgerState, now: int, beneficiary: str = ALICE):
    return step(state, ActionParams(action=Action.REVOKE, beneficiary=beneficiary, now=now))


# ---------------------------------------------------------------------------
# create_lock
# ---------------------------------------------------------------------------

class TestCreateLock:
    def test_basic(self):
        r = step(
            initial_state(),
            ActionParams(
                action=Action.CREATE_LOCK, beneficiary=ALICE, amount=1000,
                start_time=T, duration=1000, cliff=100, revocable=True, now=T - 5,
            ),
        )
        assert r.accepted
        lock = r.state.locks.get(ALICE)
        assert lock.total_amount == 1000
        assert lock.released_amount == 0
        assert lock.revocable is True
        assert lock.revoked is False
        assert r.state.total_locked == 1000
        assert r.state.now == T - 5
        assert r.effect.event == Event.LOCK_CREATED
        assert r.effect.transfers == ()
        assert r.effect.lock_after == lock

    def test_duplicate_rejected_first_lock_unchanged(self):
        s = _create(amount=1000)
        r = step(
            s,
            ActionParams(action=Action.CREATE_LOCK, beneficiary=ALICE, amount=7, start_time=T, duration=10, now=T),
        )
        assert not r.accepted
        assert r.rejection == "duplicate_lock"
        assert s.locks.get(ALICE).total_amount == 1000
        assert s.total_locked == 1000

    @pytest.mark.parametrize(
        "overrides, reason",
        [
            ({"amount": 0}, "invalid_argument:amount"),
            ({"duration": 0}, "invalid_argument:duration"),
            ({"cliff": 1001}, "invalid_argument:cliff"),
            ({"cliff": -1}, "invalid_argument:cliff"),
            ({"start_time": -1}, "invalid_argument:start_time"),
            ({"beneficiary": ""}, "invalid_argument:beneficiary"),
            ({"beneficiary": "0x" + "00" * 48}, "invalid_argument:beneficiary"),
            ({"beneficiary": "0xabc"}, "invalid_argument:beneficiary"),
            ({"beneficiary": "0x" + "A1" * 48}, "invalid_argument:beneficiary"),
        ],
    )
    def test_invalid_arguments(self, overrides, reason):
        params = dict(
            action=Action.CREATE_LOCK, beneficiary=ALICE, amount=1000,
            start_time=T, duration=1000, cliff=0, now=T,
        )
        params.update(overrides)
        r = step(initial_state(), ActionParams(**params))
        assert not r.accepted
        assert r.rejection == reason

    def test_invalid_argument_reported_before_duplicate(self):
        s = _create()
        r = step(s, ActionParams(action=Action.CREATE_LOCK, beneficiary=ALICE, amount=0, duration=1, now=T))
        assert r.rejection == "invalid_argument:amount"

    def test_amount_domain(self):
        r = step(
            initial_state(),
            ActionParams(action=Action.CREATE_LOCK, beneficiary=ALICE, amount=MAX_AMOUNT + 1, duration=1, now=T),
        )
        assert r.rejection == "param_domain:amount"

    def test_end_time_domain(self):
        r = step(
            initial_state(),
            ActionParams(
                action=Action.CREATE_LOCK, beneficiary=ALICE, amount=1,
                start_time=MAX_TIMESTAMP, duration=1, now=T,
            ),
        )
        assert r.rejection == "param_domain:end_time"

    def test_total_locked_domain(self):
        s = _create(amount=MAX_AMOUNT)
        r = step(
            s,
            ActionParams(action=Action.CREATE_LOCK, beneficiary=BOB, amount=1, start_time=T, duration=1, now=T),
        )
        assert r.rejection == "param_domain:total_locked"

    def test_two_beneficiaries_accumulate_total_locked(self):
        s = _create(beneficiary=ALICE, amount=1000)
        s = _create(s, beneficiary=BOB, amount=250)
        assert s.total_locked == 1250
        assert len(s.locks) == 2


# ---------------------------------------------------------------------------
# release
# ---------------------------------------------------------------------------

class TestRelease:
    def test_schedule_scenario(self):
        s = _create(amount=1000, duration=1000, cliff=100)

        r = _release(s, T + 50)
        assert not r.accepted
        assert r.rejection == "nothing_to_release"

        r = _release(s, T + 500)
        assert r.accepted
        assert r.effect.event == Event.RELEASED
        assert r.effect.amount == 500
        assert r.effect.transfers[0].payee == Payee.BENEFICIARY
        assert r.effect.transfers[0].amount == 500
        s = r.state
        assert s.locks.get(ALICE).released_amount == 500
        assert s.total_locked == 500

        r = _release(s, T + 1000)
        assert r.accepted
        assert r.effect.amount == 500
        assert r.state.total_locked == 0
        assert r.state.locks.get(ALICE).exhausted

    def test_nothing_left_after_full_release(self):
        s = _release(_create(), T + 2000).state
        r = _release(s, T + 3000)
        assert r.rejection == "nothing_to_release"
        # Exhausted locks are kept for audit.
        assert s.locks.get(ALICE) is not None

    def test_no_lock(self):
        r = _release(initial_state(), T)
        assert r.rejection == "no_lock"

    def test_clock_regression_rejected(self):
        s = _release(_create(), T + 500).state
        r = _release(s, T + 400)
        assert r.rejection == "clock_regression"


# ---------------------------------------------------------------------------
# revoke
# ---------------------------------------------------------------------------

class TestRevoke:
    def test_revoke_scenario(self):
        s = _create(amount=1000, duration=1000, cliff=0, revocable=True)
        r = _revoke(s, T + 300)
        assert r.accepted
        assert r.effect.event == Event.REVOKED
        assert r.effect.refund_amount == 700
        assert r.effect.transfers[0].payee == Payee.ADMIN
        assert r.effect.transfers[0].amount == 700
        lock = r.state.locks.get(ALICE)
        assert lock.revoked is True
        assert lock.revoked_at == T + 300
        assert lock.total_amount == 300
        assert lock.released_amount == 0
        assert r.state.total_locked == 300

        again = _revoke(r.state, T + 400)
        assert again.rejection == "already_revoked"

    def test_residual_claim_after_revoke(self):
        s = _create(amount=1000, duration=1000, cliff=0, revocable=True)
        s = _release(s, T + 200).state
        s = _revoke(s, T + 300).state
        assert s.locks.get(ALICE).total_amount == 300
        assert s.total_locked == 100

        r = _release(s, T + 301)
        assert r.accepted
        assert r.effect.amount == 100
        s = r.state
        assert s.locks.get(ALICE).released_amount == 300
        assert s.total_locked == 0

        r = _release(s, T + 5000)
        assert r.rejection == "lock_revoked"

    def test_residual_not_growing_after_revoke(self):
        s = _create(amount=1000, duration=1000, cliff=0, revocable=True)
        s = _revoke(s, T + 300).state
        r = _release(s, T + 1000)
        assert r.effect.amount == 300

    def test_revoke_before_cliff_refunds_everything(self):
        s = _create(amount=1000, cliff=100, revocable=True)
        r = _revoke(s, T + 50)
        assert r.effect.refund_amount == 1000
        assert r.state.locks.get(ALICE).total_amount == 0
        assert r.state.total_locked == 0
        assert _release(r.state, T + 5000).rejection == "lock_revoked"

    def test_revoke_after_full_vesting_has_no_transfer(self):
        s = _create(amount=1000, revocable=True)
        r = _revoke(s, T + 1000)
        assert r.accepted
        assert r.effect.refund_amount == 0
        assert r.effect.transfers == ()
        assert _release(r.state, T + 1001).effect.amount == 1000

    def test_not_revocable(self):
        s = _create(revocable=False)
        for now in (T, T + 500, T + 5000):
            assert _revoke(s, now).rejection == "not_revocable"

    def test_no_lock(self):
        assert _revoke(initial_state(), T).rejection == "no_lock"


# ---------------------------------------------------------------------------
# invariant enforcement + step_or_raise
# ---------------------------------------------------------------------------

class TestInvariantEnforcement:
    def test_corrupt_pre_state_rejected_by_invariants(self):
        s = replace(_create(amount=1000), total_locked=5000)
        r = step(
            s,
            ActionParams(action=Action.CREATE_LOCK, beneficiary=BOB, amount=1, start_time=T, duration=1, now=T),
        )
        assert not r.accepted
        assert r.rejection.startswith("invariant:")
        assert "inv_total_locked_conservation" in r.rejection


class TestStepOrRaise:
    def test_accepted_returns_result(self):
        s = _create()
        r = step_or_raise(s, ActionParams(action=Action.RELEASE, beneficiary=ALICE, now=T + 500))
        assert r.accepted

    @pytest.mark.parametrize(
        "state_fn, params, exc",
        [
            (lambda: initial_state(), ActionParams(action=Action.RELEASE, beneficiary=ALICE, now=T), NoLock),
            (lambda: _create(), ActionParams(action=Action.RELEASE, beneficiary=ALICE, now=T), NothingToRelease),
            (lambda: _create(), ActionParams(action=Action.REVOKE, beneficiary=ALICE, now=T), NotRevocable),
            (lambda: _create(), ActionParams(action=Action.CREATE_LOCK, beneficiary=ALICE, amount=1, duration=1, now=T), DuplicateLock),
            (lambda: initial_state(), ActionParams(action=Action.CREATE_LOCK, beneficiary=ALICE, amount=0, duration=1, now=T), InvalidArgument),
            (lambda: initial_state(), ActionParams(action=Action.RELEASE, beneficiary=ALICE, now=-1), VestingOverflowError),
            (lambda: _create(now=T + 10), ActionParams(action=Action.RELEASE, beneficiary=ALICE, now=T), ClockRegression),
        ],
    )
    def test_rejections_map_to_exceptions(self, state_fn, params, exc):
        with pytest.raises(exc):
            step_or_raise(state_fn(), params)

    def test_already_revoked_and_lock_revoked(self):
        s = _create(amount=1000, cliff=0, revocable=True)
        s = step_or_raise(s, ActionParams(action=Action.REVOKE, beneficiary=ALICE, now=T)).state
        with pytest.raises(AlreadyRevoked):
            step_or_raise(s, ActionParams(action=Action.REVOKE, beneficiary=ALICE, now=T + 1))
        with pytest.raises(LockRevoked):
            step_or_raise(s, ActionParams(action=Action.RELEASE, beneficiary=ALICE, now=T + 1))

    def test_invariant_error_carries_violations(self):
        s = replace(_create(), total_locked=1)
        with pytest.raises(VestingInvariantError) as excinfo:
            step_or_raise(s, ActionParams(action=Action.RELEASE, beneficiary=ALICE, now=T + 500))
        assert "inv_total_locked_conservation" in excinfo.value.violations
