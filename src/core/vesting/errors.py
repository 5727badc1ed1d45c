"""Exception types for the vesting ledger.

The pure engine reports failures as ``StepResult`` rejection codes;
``step_or_raise()`` in ``engine.py`` and the imperative shell in
``src/integration/vesting_ledger.py`` raise the classes below instead.
"""

from __future__ import annotations


class VestingError(Exception):
    """Base class for every ledger failure."""


class InvalidArgument(VestingError, ValueError):
    """Bad schedule parameters, zero amount or null identity."""


class DuplicateLock(VestingError):
    """A lock already exists for the beneficiary."""


class NoLock(VestingError):
    """No lock exists for the beneficiary."""


class AlreadyRevoked(VestingError):
    """The lock has already been revoked."""


class NotRevocable(VestingError):
    """The lock was created irrevocable."""


class LockRevoked(VestingError):
    """The lock is revoked and nothing is owed to the beneficiary any more."""


class NothingToRelease(VestingError):
    """The releasable amount is zero."""


class ClockRegression(VestingError):
    """An operation was evaluated at a time earlier than the ledger's last step."""


class Unauthorized(VestingError):
    """The caller is not the administrator (or its authorization is invalid)."""


class TransferFailed(VestingError):
    """The custodian could not move the asset."""


class ReentrantCall(VestingError):
    """A guarded mutator was entered while another one is in progress."""


class VestingOverflowError(VestingError):
    """Raised when a value exceeds its domain bounds."""


class VestingInvariantError(VestingError):
    """Raised when a post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
