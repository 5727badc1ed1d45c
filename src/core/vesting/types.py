"""Data types for the vesting ledger.

All types are frozen dataclasses (immutable).

Units/conventions:
- amounts are non-negative integer base units of the managed asset,
- `*_time` values and `now` are unix seconds,
- `duration` / `cliff` are seconds measured from `start_time`,
- identities are 0x-prefixed lowercase 48-byte hex public keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .store import LockStore

PubKey = str
AssetId = str
Amount = int

NULL_PUBKEY: PubKey = "0x" + "00" * 48


@unique
class Action(Enum):
    """One member per ledger mutator handled by the engine."""
    CREATE_LOCK = "create_lock"
    RELEASE = "release"
    REVOKE = "revoke"


@unique
class Event(Enum):
    """One member per observable ledger event."""
    LOCK_CREATED = "LockCreated"
    RELEASED = "Released"
    REVOKED = "Revoked"
    ASSET_RECOVERED = "AssetRecovered"
    ADMIN_TRANSFERRED = "AdminTransferred"


@unique
class Payee(Enum):
    """Who receives an outgoing transfer planned by the engine."""
    BENEFICIARY = "beneficiary"
    ADMIN = "admin"


@dataclass(frozen=True)
class Lock:
    """Vesting schedule and accounting for a single beneficiary."""

    total_amount: int
    released_amount: int
    start_time: int
    duration: int
    cliff: int
    revocable: bool
    revoked: bool = False
    revoked_at: int = 0

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    @property
    def outstanding(self) -> int:
        """Amount still held in custody for this lock."""
        return self.total_amount - self.released_amount

    @property
    def exhausted(self) -> bool:
        return self.released_amount == self.total_amount


def _empty_store() -> "LockStore":
    from .store import LockStore

    return LockStore()


@dataclass(frozen=True)
class LedgerState:
    """Complete state of one vesting ledger."""

    locks: "LockStore" = field(default_factory=_empty_store)
    total_locked: int = 0
    # Timestamp of the last accepted step; ledger time never moves backwards.
    now: int = 0


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields default to 0/False."""

    action: Action
    beneficiary: PubKey = ""
    now: int = 0                  # shared: evaluation time
    amount: int = 0               # create_lock (actually received amount)
    start_time: int = 0           # create_lock
    duration: int = 0             # create_lock
    cliff: int = 0                # create_lock
    revocable: bool = False       # create_lock


@dataclass(frozen=True)
class Transfer:
    """An outgoing custodian push the shell must perform after committing."""

    payee: Payee
    amount: int


@dataclass(frozen=True)
class Effect:
    """Post-state observables emitted after a successful step."""

    event: Event
    beneficiary: PubKey
    amount: int = 0
    refund_amount: int = 0
    transfers: tuple[Transfer, ...] = ()
    total_locked_after: int = 0
    lock_after: Lock | None = None


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    state: LedgerState | None = None
    effect: Effect | None = None
    rejection: str | None = None
