"""State transition functions for the vesting engine.

One pure function per action. Each returns a new `LedgerState` with the
action's updates applied.

Semantics:
- updates evaluate against the PRE-state,
- the lock record and `total_locked` change together in one new state,
- we implement updates via `dataclasses.replace()` on frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import replace

from .math import releasable_amount, vested_amount
from .types import ActionParams, LedgerState, Lock


def apply_create_lock(state: LedgerState, params: ActionParams) -> LedgerState:
    lock = Lock(
        total_amount=params.amount,
        released_amount=0,
        start_time=params.start_time,
        duration=params.duration,
        cliff=params.cliff,
        revocable=params.revocable,
    )
    return replace(
        state,
        locks=state.locks.insert(params.beneficiary, lock),
        total_locked=state.total_locked + params.amount,
        now=params.now,
    )


def apply_release(state: LedgerState, params: ActionParams) -> LedgerState:
    lock = state.locks.get(params.beneficiary)
    amount = releasable_amount(lock, params.now)
    return replace(
        state,
        locks=state.locks.mutate(
            params.beneficiary,
            lambda l: replace(l, released_amount=l.released_amount + amount),
        ),
        total_locked=state.total_locked - amount,
        now=params.now,
    )


def apply_revoke(state: LedgerState, params: ActionParams) -> LedgerState:
    lock = state.locks.get(params.beneficiary)
    vested = vested_amount(lock, params.now)
    refund = lock.total_amount - vested
    return replace(
        state,
        locks=state.locks.mutate(
            params.beneficiary,
            lambda l: replace(l, revoked=True, revoked_at=params.now, total_amount=vested),
        ),
        total_locked=state.total_locked - refund,
        now=params.now,
    )
