"""
Nonce table for admin-command replay protection (v1).

We track, per admin pubkey, the last accepted command nonce. Policy is defined
by `src/integration/admin.py` (strict sequential nonces).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .balances import PubKey
from .canonical import canonical_pubkey

MAX_NONCE = 0xFFFFFFFF


@dataclass
class NonceTable:
    """
    Mutable mapping: admin_pubkey -> last_used_nonce.

    A small, explicit state table in the spirit of `BalanceTable`.
    """

    _last: Dict[PubKey, int] = field(default_factory=dict)

    def get_last(self, pubkey: PubKey) -> int:
        return self._last.get(canonical_pubkey(pubkey), 0)

    def next_nonce(self, pubkey: PubKey) -> int:
        return self.get_last(pubkey) + 1

    def set_last(self, pubkey: PubKey, last_nonce: int) -> None:
        if not isinstance(last_nonce, int) or isinstance(last_nonce, bool) or last_nonce < 0:
            raise TypeError("last_nonce must be a non-negative int")
        if last_nonce > MAX_NONCE:
            raise TypeError("last_nonce must fit in u32")
        self._last[canonical_pubkey(pubkey)] = int(last_nonce)

    def get_all(self) -> Mapping[PubKey, int]:
        # Shallow copy so callers cannot mutate the table while iterating.
        return dict(self._last)
