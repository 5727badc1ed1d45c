"""Invariant checkers for the vesting engine.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass).

Per-lock invariants must hold for every lock in the store; the conservation
invariant ties the per-lock accounting to the ledger-wide `total_locked`.
"""

from __future__ import annotations

from typing import Callable

from .math import MAX_AMOUNT, MAX_TIMESTAMP, vested_amount
from .types import LedgerState


def inv_amounts_nonneg(s: LedgerState) -> bool:
    if s.total_locked < 0:
        return False
    return all(l.total_amount >= 0 and l.released_amount >= 0 for _, l in s.locks.items())


def inv_released_le_total(s: LedgerState) -> bool:
    return all(l.released_amount <= l.total_amount for _, l in s.locks.items())


def inv_released_le_vested(s: LedgerState) -> bool:
    return all(l.released_amount <= vested_amount(l, s.now) for _, l in s.locks.items())


def inv_total_locked_conservation(s: LedgerState) -> bool:
    return s.total_locked == s.locks.outstanding_total()


def inv_total_locked_bounded(s: LedgerState) -> bool:
    return s.total_locked <= MAX_AMOUNT


def inv_schedule_valid(s: LedgerState) -> bool:
    for _, l in s.locks.items():
        if l.duration <= 0 or l.cliff < 0 or l.cliff > l.duration:
            return False
        if l.start_time < 0 or l.start_time + l.duration > MAX_TIMESTAMP:
            return False
    return True


def inv_revoked_implies_revocable(s: LedgerState) -> bool:
    return all(l.revocable for _, l in s.locks.items() if l.revoked)


def inv_revoked_at_consistent(s: LedgerState) -> bool:
    for _, l in s.locks.items():
        if not l.revoked and l.revoked_at != 0:
            return False
        if l.revoked and l.revoked_at > s.now:
            return False
    return True


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[LedgerState], bool]] = {
    "inv_amounts_nonneg": inv_amounts_nonneg,
    "inv_released_le_total": inv_released_le_total,
    "inv_released_le_vested": inv_released_le_vested,
    "inv_total_locked_conservation": inv_total_locked_conservation,
    "inv_total_locked_bounded": inv_total_locked_bounded,
    "inv_schedule_valid": inv_schedule_valid,
    "inv_revoked_implies_revocable": inv_revoked_implies_revocable,
    "inv_revoked_at_consistent": inv_revoked_at_consistent,
}


def check_all(state: LedgerState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]
