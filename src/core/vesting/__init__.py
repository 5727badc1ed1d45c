"""`vesting`: pure-Python vesting engine (functional core).

- deterministic, integer-only transitions,
- immutable state (frozen dataclasses, copy-on-write lock store),
- fail-closed guards and invariant checks.

Asset movement, authorization and event delivery live in the imperative shell
(`src/integration/vesting_ledger.py`); this package never performs I/O.

Public API:
- `initial_state() -> LedgerState`
- `step(state, params) -> StepResult`
- `step_or_raise(state, params) -> StepResult` (raises on rejection)
- `vested_amount(lock, now)` / `releasable_amount(lock, now)`
"""

from .engine import raise_for_rejection, step, step_or_raise
from .errors import (
    AlreadyRevoked,
    ClockRegression,
    DuplicateLock,
    InvalidArgument,
    LockRevoked,
    NoLock,
    NothingToRelease,
    NotRevocable,
    ReentrantCall,
    TransferFailed,
    Unauthorized,
    VestingError,
    VestingInvariantError,
    VestingOverflowError,
)
from .math import MAX_AMOUNT, MAX_TIMESTAMP, releasable_amount, unvested_amount, vested_amount
from .state import initial_state, state_from_dict, state_to_dict
from .store import LockStore, is_null_identity
from .types import (
    NULL_PUBKEY,
    Action,
    ActionParams,
    Effect,
    Event,
    LedgerState,
    Lock,
    Payee,
    StepResult,
    Transfer,
)

__all__ = [
    "step",
    "step_or_raise",
    "raise_for_rejection",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "vested_amount",
    "releasable_amount",
    "unvested_amount",
    "MAX_AMOUNT",
    "MAX_TIMESTAMP",
    "LockStore",
    "is_null_identity",
    "NULL_PUBKEY",
    "Action",
    "ActionParams",
    "Effect",
    "Event",
    "LedgerState",
    "Lock",
    "Payee",
    "StepResult",
    "Transfer",
    "VestingError",
    "InvalidArgument",
    "DuplicateLock",
    "NoLock",
    "AlreadyRevoked",
    "NotRevocable",
    "LockRevoked",
    "NothingToRelease",
    "ClockRegression",
    "Unauthorized",
    "TransferFailed",
    "ReentrantCall",
    "VestingOverflowError",
    "VestingInvariantError",
]
