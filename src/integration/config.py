"""
Ledger configuration.

A `LedgerConfig` is built either directly or from a YAML mapping:

    managed_asset: "0x1111...11"      # 32-byte asset id
    admin: "0xaaaa...aa"              # 48-byte admin pubkey
    chain_id: "vesting-mainnet"       # optional
    require_admin_signatures: true    # optional
    verify_custody: true              # optional

Unknown keys are rejected (fail-closed), so a typo cannot silently fall back to
a default.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..state.canonical import canonical_asset_id, canonical_pubkey


@dataclass(frozen=True)
class LedgerConfig:
    managed_asset: str
    admin: str
    # Signed admin commands are bound to a specific deployment.
    chain_id: str = "vesting-local"
    # If True, admin-only operations need a BLS-signed `AdminAuthorization`.
    require_admin_signatures: bool = False
    # If True, after every committed operation the ledger checks that custody
    # still holds at least `total_locked` of the managed asset.
    verify_custody: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "managed_asset", canonical_asset_id(self.managed_asset, name="managed_asset"))
        object.__setattr__(self, "admin", canonical_pubkey(self.admin, name="admin"))
        if not isinstance(self.chain_id, str) or not self.chain_id or not self.chain_id.isascii():
            raise ValueError("chain_id must be a non-empty ASCII string")
        for name in ("require_admin_signatures", "verify_custody"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"{name} must be a bool")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LedgerConfig":
        if not isinstance(data, Mapping):
            raise TypeError("config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(map(str, unknown))}")
        for required in ("managed_asset", "admin"):
            if required not in data:
                raise ValueError(f"missing config key: {required}")
        return cls(**dict(data))

    def to_mapping(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(path: str | Path) -> LedgerConfig:
    """Load a `LedgerConfig` from a YAML file."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    return LedgerConfig.from_mapping(obj)
