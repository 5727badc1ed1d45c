"""State construction and serialization for the vesting ledger.

`initial_state()` returns the empty ledger (no locks, nothing held).

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s` for all valid states.
"""

from __future__ import annotations

from typing import Any, Mapping

from .store import LockStore
from .types import LedgerState, Lock

# Auto-derived from Lock field definitions (single source of truth).
LOCK_FIELD_NAMES: tuple[str, ...] = tuple(Lock.__dataclass_fields__)
_BOOL_FIELDS = frozenset({"revocable", "revoked"})


def initial_state() -> LedgerState:
    """Return the canonical initial LedgerState."""
    return LedgerState()


def lock_to_dict(lock: Lock) -> dict[str, bool | int]:
    return {name: getattr(lock, name) for name in LOCK_FIELD_NAMES}


def lock_from_dict(d: Mapping[str, Any]) -> Lock:
    """Deserialize a dict to a Lock. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in LOCK_FIELD_NAMES:
        val = d[name]
        if name in _BOOL_FIELDS:
            if not isinstance(val, bool):
                raise TypeError(f"lock field {name!r} must be bool, got {type(val).__name__}")
            kwargs[name] = val
        elif isinstance(val, int) and not isinstance(val, bool):
            kwargs[name] = int(val)  # normalize int subclasses
        else:
            raise TypeError(f"lock field {name!r} must be int, got {type(val).__name__}")
    return Lock(**kwargs)


def state_to_dict(state: LedgerState) -> dict[str, Any]:
    """Serialize a LedgerState to a plain, JSON-friendly dict."""
    return {
        "locks": [
            {"beneficiary": beneficiary, **lock_to_dict(lock)}
            for beneficiary, lock in state.locks.items()
        ],
        "total_locked": state.total_locked,
        "now": state.now,
    }


def state_from_dict(d: Mapping[str, Any]) -> LedgerState:
    """Deserialize a dict to a LedgerState. Raises KeyError on missing fields."""
    entries = d["locks"]
    if not isinstance(entries, list):
        raise TypeError("locks must be a list")
    locks: dict[str, Lock] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise TypeError("lock entries must be objects")
        beneficiary = entry["beneficiary"]
        if not isinstance(beneficiary, str):
            raise TypeError("lock beneficiary must be a string")
        if beneficiary in locks:
            raise ValueError(f"duplicate lock entry for {beneficiary}")
        locks[beneficiary] = lock_from_dict(entry)

    scalars: dict[str, int] = {}
    for name in ("total_locked", "now"):
        val = d[name]
        if not isinstance(val, int) or isinstance(val, bool):
            raise TypeError(f"state var {name!r} must be int, got {type(val).__name__}")
        scalars[name] = int(val)
    return LedgerState(locks=LockStore(locks), **scalars)
