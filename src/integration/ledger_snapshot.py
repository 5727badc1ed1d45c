"""
Ledger snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / backup.
- Round-trippable into a `VestingLedger` (config, state, admin, nonces).
- Explicit versioning, and a state root that a restore must reproduce.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..core.vesting.errors import VestingInvariantError
from ..core.vesting.invariants import check_all
from ..core.vesting.state import state_from_dict, state_to_dict
from ..core.vesting.types import LedgerState, PubKey
from ..state.canonical import canonical_json_bytes, canonical_pubkey, domain_sep_bytes, sha256_hex
from ..state.nonces import NonceTable
from ..state.state_root import compute_state_root
from .config import LedgerConfig


LEDGER_SNAPSHOT_VERSION = 1
MAX_SNAPSHOT_LOCKS = 1_000_000


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Deterministic, versioned snapshot of a ledger.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


@dataclass(frozen=True)
class RestoredParts:
    config: LedgerConfig
    state: LedgerState
    admin: PubKey
    nonces: NonceTable


def snapshot_from_parts(
    *,
    config: LedgerConfig,
    state: LedgerState,
    admin: PubKey,
    nonces: NonceTable,
    version: int = LEDGER_SNAPSHOT_VERSION,
) -> LedgerSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    nonce_entries = [{"pubkey": pk, "last_nonce": int(last)} for pk, last in nonces.get_all().items()]
    nonce_entries.sort(key=lambda e: e["pubkey"])

    data: Dict[str, Any] = {
        "version": int(version),
        "config": config.to_mapping(),
        "admin": canonical_pubkey(admin, name="admin"),
        "state": state_to_dict(state),
        "state_root": compute_state_root(state, managed_asset=config.managed_asset),
        "nonces": nonce_entries,
    }
    return LedgerSnapshot(version=version, data=data)


def restore_parts(snapshot: Mapping[str, Any]) -> RestoredParts:
    """
    Validate a snapshot mapping and rebuild its parts.

    Raises:
        TypeError / ValueError: malformed snapshot or state root mismatch
        VestingInvariantError: the restored state violates an invariant
    """
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")

    version = snapshot.get("version", LEDGER_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    config_obj = snapshot.get("config")
    if not isinstance(config_obj, Mapping):
        raise TypeError("snapshot.config must be an object")
    config = LedgerConfig.from_mapping(config_obj)

    admin = snapshot.get("admin", config.admin)
    if not isinstance(admin, str):
        raise TypeError("snapshot.admin must be a string")
    admin = canonical_pubkey(admin, name="snapshot.admin")

    state_obj = snapshot.get("state")
    if not isinstance(state_obj, Mapping):
        raise TypeError("snapshot.state must be an object")
    locks_obj = state_obj.get("locks")
    if isinstance(locks_obj, list) and len(locks_obj) > MAX_SNAPSHOT_LOCKS:
        raise ValueError(f"too many locks: {len(locks_obj)} > {MAX_SNAPSHOT_LOCKS}")
    try:
        state = state_from_dict(state_obj)
    except KeyError as exc:
        raise ValueError(f"snapshot.state missing field: {exc}") from exc

    expected_root = snapshot.get("state_root")
    actual_root = compute_state_root(state, managed_asset=config.managed_asset)
    if expected_root is not None and expected_root != actual_root:
        raise ValueError("snapshot state_root mismatch")

    violations = check_all(state)
    if violations:
        raise VestingInvariantError(violations)

    nonces = NonceTable()
    nonce_entries = snapshot.get("nonces") or []
    if not isinstance(nonce_entries, list):
        raise TypeError("snapshot.nonces must be a list")
    for entry in nonce_entries:
        if not isinstance(entry, Mapping):
            raise TypeError("snapshot.nonces entries must be objects")
        pubkey = entry.get("pubkey")
        if not isinstance(pubkey, str):
            raise TypeError("nonce entry pubkey must be a string")
        nonces.set_last(pubkey, entry.get("last_nonce"))

    return RestoredParts(config=config, state=state, admin=admin, nonces=nonces)
