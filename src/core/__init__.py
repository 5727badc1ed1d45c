"""
Core vesting algorithms
"""

from .vesting import (
    LedgerState,
    Lock,
    LockStore,
    initial_state,
    releasable_amount,
    step,
    step_or_raise,
    vested_amount,
)

__all__ = [
    "LedgerState",
    "Lock",
    "LockStore",
    "initial_state",
    "releasable_amount",
    "step",
    "step_or_raise",
    "vested_amount",
]
