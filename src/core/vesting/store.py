"""
Keyed lock storage: one `Lock` per beneficiary.

`LockStore` is persistent (copy-on-write): `insert()` and `mutate()` return a
new store and never touch the receiver. A ledger rolls an operation back simply
by keeping the previous `LedgerState`.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

from .errors import DuplicateLock, InvalidArgument, NoLock
from .types import NULL_PUBKEY, Lock, PubKey


def is_null_identity(identity: Optional[str]) -> bool:
    return identity is None or identity == "" or identity.lower() == NULL_PUBKEY


class LockStore:
    """
    Immutable mapping beneficiary -> Lock.

    Iteration helpers return entries sorted by beneficiary so callers never
    depend on insertion order.
    """

    __slots__ = ("_locks",)

    def __init__(self, locks: Optional[Mapping[PubKey, Lock]] = None):
        self._locks: Dict[PubKey, Lock] = dict(locks or {})

    def get(self, beneficiary: PubKey) -> Optional[Lock]:
        """Get the lock for *beneficiary*. Returns None if not found."""
        return self._locks.get(beneficiary)

    def insert(self, beneficiary: PubKey, lock: Lock) -> "LockStore":
        """
        Return a new store with *lock* added for *beneficiary*.

        Raises:
            InvalidArgument: null beneficiary, non-positive amount or duration,
                or a cliff outside ``[0, duration]``
            DuplicateLock: beneficiary already has a lock
        """
        if is_null_identity(beneficiary):
            raise InvalidArgument("beneficiary must be a non-null identity")
        if lock.total_amount <= 0:
            raise InvalidArgument(f"amount must be positive: {lock.total_amount}")
        if lock.duration <= 0:
            raise InvalidArgument(f"duration must be positive: {lock.duration}")
        if lock.cliff < 0 or lock.cliff > lock.duration:
            raise InvalidArgument(f"cliff must be within [0, duration]: {lock.cliff} > {lock.duration}")
        if beneficiary in self._locks:
            raise DuplicateLock(f"lock already exists for {beneficiary}")
        locks = dict(self._locks)
        locks[beneficiary] = lock
        return LockStore(locks)

    def mutate(self, beneficiary: PubKey, fn: Callable[[Lock], Lock]) -> "LockStore":
        """
        Return a new store with the lock for *beneficiary* replaced by ``fn(lock)``.

        Raises:
            NoLock: beneficiary has no lock
        """
        current = self._locks.get(beneficiary)
        if current is None:
            raise NoLock(f"no lock for {beneficiary}")
        locks = dict(self._locks)
        locks[beneficiary] = fn(current)
        return LockStore(locks)

    def items(self) -> list[Tuple[PubKey, Lock]]:
        return sorted(self._locks.items(), key=lambda kv: kv[0])

    def beneficiaries(self) -> list[PubKey]:
        return sorted(self._locks)

    def outstanding_total(self) -> int:
        """Sum of ``total_amount - released_amount`` over all locks."""
        return sum(lock.outstanding for lock in self._locks.values())

    def __contains__(self, beneficiary: object) -> bool:
        return beneficiary in self._locks

    def __iter__(self) -> Iterator[PubKey]:
        return iter(self.beneficiaries())

    def __len__(self) -> int:
        return len(self._locks)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LockStore):
            return NotImplemented
        return self._locks == other._locks

    def __hash__(self) -> int:
        return hash(tuple(self.items()))

    def __repr__(self) -> str:
        return f"LockStore({len(self._locks)} locks)"
