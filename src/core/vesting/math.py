"""Pure arithmetic for the vesting ledger.

Every function is stateless and operates on plain Python ints.

Rounding: the linear region uses floor division, so the ledger never pays out
more than has vested. The shortfall is below one base unit at any instant and
disappears once the schedule ends.

Python ints do not wrap, so overflow is modelled explicitly: values are bounded
by the domain constants below and the one wide multiplication goes through
`checked_mul()`, which fails loudly instead of returning an out-of-domain value.
"""

from __future__ import annotations

from .errors import VestingInvariantError, VestingOverflowError
from .types import Lock

# Domain constants
MAX_AMOUNT: int = 2**128 - 1
MAX_TIMESTAMP: int = 2**64 - 1
MAX_PRODUCT: int = 2**256 - 1


def checked_mul(a: int, b: int, *, name: str = "product") -> int:
    """Multiply two non-negative ints, raising if the result leaves the domain."""
    if a < 0 or b < 0:
        raise VestingOverflowError(f"{name}: negative operand")
    product = a * b
    if product > MAX_PRODUCT:
        raise VestingOverflowError(f"{name}: exceeds {MAX_PRODUCT.bit_length()}-bit domain")
    return product


def vested_amount(lock: Lock | None, now: int) -> int:
    """Amount of *lock* vested at *now*.

    - missing or empty lock: 0
    - before the cliff: 0
    - revoked lock at or after `revoked_at`: the snapshot taken at revoke time
      (`total_amount`); earlier times follow the schedule on that snapshot
    - at or after `start_time + duration`: `total_amount`
    - otherwise: ``total_amount * (now - start_time) // duration``
    """
    if lock is None or lock.total_amount == 0:
        return 0
    if now < lock.start_time + lock.cliff:
        return 0
    if lock.revoked and now >= lock.revoked_at:
        return lock.total_amount
    if now >= lock.start_time + lock.duration:
        return lock.total_amount
    elapsed = now - lock.start_time
    return checked_mul(lock.total_amount, elapsed, name="total_amount*elapsed") // lock.duration


def releasable_amount(lock: Lock | None, now: int) -> int:
    """Vested but not yet released amount of *lock* at *now*."""
    if lock is None:
        return 0
    vested = vested_amount(lock, now)
    if vested < lock.released_amount:
        raise VestingInvariantError(["inv_released_le_vested"])
    return vested - lock.released_amount


def unvested_amount(lock: Lock | None, now: int) -> int:
    """Amount a revoke at *now* would return to the administrator."""
    if lock is None:
        return 0
    return lock.total_amount - vested_amount(lock, now)
