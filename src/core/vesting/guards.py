"""Guard functions for the vesting engine.

One pure function per action. Each evaluates the PRE-state and returns None
when the action is allowed, or a rejection code otherwise. Rejection codes are
mapped to exceptions by ``engine.step_or_raise()``.

Argument checks come first, state preconditions second, so a caller-correctable
mistake is always reported before a state conflict.
"""

from __future__ import annotations

from ...state.canonical import canonical_hex_fixed_allow_0x
from .math import MAX_AMOUNT, releasable_amount
from .store import is_null_identity
from .types import ActionParams, LedgerState


def _beneficiary_error(beneficiary: str) -> str | None:
    if is_null_identity(beneficiary):
        return "invalid_argument:beneficiary"
    try:
        canonical = canonical_hex_fixed_allow_0x(beneficiary, nbytes=48, name="beneficiary")
    except (TypeError, ValueError):
        return "invalid_argument:beneficiary"
    if canonical != beneficiary:
        return "invalid_argument:beneficiary"
    return None


def guard_clock(state: LedgerState, params: ActionParams) -> str | None:
    if params.now < state.now:
        return "clock_regression"
    return None


def guard_create_lock(state: LedgerState, params: ActionParams) -> str | None:
    err = _beneficiary_error(params.beneficiary)
    if err is not None:
        return err
    if params.amount <= 0:
        return "invalid_argument:amount"
    if params.duration <= 0:
        return "invalid_argument:duration"
    if params.cliff < 0 or params.cliff > params.duration:
        return "invalid_argument:cliff"
    if params.start_time < 0:
        return "invalid_argument:start_time"
    if params.beneficiary in state.locks:
        return "duplicate_lock"
    if state.total_locked + params.amount > MAX_AMOUNT:
        return "param_domain:total_locked"
    return None


def guard_release(state: LedgerState, params: ActionParams) -> str | None:
    err = _beneficiary_error(params.beneficiary)
    if err is not None:
        return err
    lock = state.locks.get(params.beneficiary)
    if lock is None:
        return "no_lock"
    releasable = releasable_amount(lock, params.now)
    if releasable == 0:
        # A revoked lock still pays out what had vested before the revoke;
        # only once that residual is settled does release report the revoke.
        return "lock_revoked" if lock.revoked else "nothing_to_release"
    return None


def guard_revoke(state: LedgerState, params: ActionParams) -> str | None:
    err = _beneficiary_error(params.beneficiary)
    if err is not None:
        return err
    lock = state.locks.get(params.beneficiary)
    if lock is None:
        return "no_lock"
    if not lock.revocable:
        return "not_revocable"
    if lock.revoked:
        return "already_revoked"
    return None
