"""
Deterministic ledger state root hashing (v1).

This is intended for:
- debugging / audit (stable hashes for the same logical state),
- snapshot integrity (a restored snapshot must reproduce its root),
- comparing two ledgers that processed the same operations.

Layout (all integers uvarint, identities raw bytes):

    domain_sep("vesting_state_root", v1)
    || asset_id(32)
    || total_locked || now
    || n_locks || (pubkey(48) || lock fields...)*   sorted by pubkey bytes
"""

from __future__ import annotations

from ..core.vesting.types import LedgerState, Lock
from .canonical import (
    ASSET_ID_NBYTES,
    PUBKEY_NBYTES,
    domain_sep_bytes,
    encode_bytes,
    encode_uvarint,
    hex_to_bytes_fixed,
    sha256_hex,
)


STATE_ROOT_VERSION = 1


def _encode_lock(lock: Lock) -> bytes:
    out = bytearray()
    for value in (lock.total_amount, lock.released_amount, lock.start_time, lock.duration, lock.cliff):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"invalid lock field: {value!r}")
        out += encode_uvarint(value)
    flags = (1 if lock.revocable else 0) | (2 if lock.revoked else 0)
    out += encode_uvarint(flags)
    out += encode_uvarint(lock.revoked_at)
    return bytes(out)


def _sorted_lock_entries(state: LedgerState) -> list[tuple[bytes, Lock]]:
    entries: list[tuple[bytes, Lock]] = []
    seen: set[bytes] = set()
    for beneficiary, lock in state.locks.items():
        pk_b = hex_to_bytes_fixed(beneficiary, nbytes=PUBKEY_NBYTES, name="beneficiary")
        if pk_b in seen:
            raise ValueError("duplicate decoded beneficiary in locks")
        seen.add(pk_b)
        entries.append((pk_b, lock))
    entries.sort(key=lambda t: t[0])
    return entries


def encode_state(state: LedgerState, *, managed_asset: str) -> bytes:
    out = bytearray()
    out += encode_bytes(hex_to_bytes_fixed(managed_asset, nbytes=ASSET_ID_NBYTES, name="managed_asset"))
    out += encode_uvarint(state.total_locked)
    out += encode_uvarint(state.now)
    entries = _sorted_lock_entries(state)
    out += encode_uvarint(len(entries))
    for pk_b, lock in entries:
        out += encode_bytes(pk_b)
        out += _encode_lock(lock)
    return bytes(out)


def compute_state_root(state: LedgerState, *, managed_asset: str) -> str:
    """Return the 0x-prefixed SHA-256 commitment of *state*."""
    payload = domain_sep_bytes("vesting_state_root", version=STATE_ROOT_VERSION)
    payload += encode_state(state, managed_asset=managed_asset)
    return sha256_hex(payload)
