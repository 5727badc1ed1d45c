from __future__ import annotations

import copy

import pytest

from src.core.vesting import VestingInvariantError
from src.core.vesting.state import state_to_dict
from src.core.vesting.store import LockStore
from src.core.vesting.types import LedgerState, Lock
from src.integration import LedgerConfig
from src.integration.ledger_snapshot import restore_parts, snapshot_from_parts
from src.state.nonces import NonceTable
from src.state.state_root import compute_state_root

ASSET = "0x" + "01" * 32
ADMIN = "0x" + "aa" * 48
ALICE = "0x" + "a1" * 48


def _snapshot():
    lock = Lock(total_amount=1000, released_amount=100, start_time=0, duration=1000, cliff=0, revocable=True)
    state = LedgerState(locks=LockStore({ALICE: lock}), total_locked=900, now=100)
    nonces = NonceTable()
    nonces.set_last(ADMIN, 4)
    config = LedgerConfig(managed_asset=ASSET, admin=ADMIN)
    return snapshot_from_parts(config=config, state=state, admin=ADMIN, nonces=nonces), state


def test_restore_round_trip() -> None:
    snap, state = _snapshot()
    parts = restore_parts(snap.data)
    assert parts.state == state
    assert parts.admin == ADMIN
    assert parts.nonces.get_last(ADMIN) == 4
    assert snap.data["state_root"] == compute_state_root(state, managed_asset=ASSET)


def test_commitment_is_deterministic() -> None:
    a, _ = _snapshot()
    b, _ = _snapshot()
    assert a.canonical_bytes() == b.canonical_bytes()
    assert a.commitment_hex() == b.commitment_hex()
    assert a.commitment_hex() == "0x" + a.commitment_bytes().hex()


def test_tampered_state_rejected() -> None:
    snap, _ = _snapshot()
    data = copy.deepcopy(snap.data)
    data["state"]["locks"][0]["released_amount"] = 0
    with pytest.raises(ValueError):
        restore_parts(data)


def test_inconsistent_state_rejected_even_without_root() -> None:
    snap, state = _snapshot()
    data = copy.deepcopy(snap.data)
    data["state"]["total_locked"] = 1
    data.pop("state_root")
    with pytest.raises(VestingInvariantError):
        restore_parts(data)


@pytest.mark.parametrize("version", [0, 2, True])
def test_unsupported_version(version) -> None:
    snap, _ = _snapshot()
    data = dict(snap.data, version=version)
    with pytest.raises(ValueError):
        restore_parts(data)


def test_missing_state_field() -> None:
    snap, state = _snapshot()
    data = copy.deepcopy(snap.data)
    del data["state"]["now"]
    with pytest.raises(ValueError):
        restore_parts(data)
