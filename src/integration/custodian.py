"""
Asset custody boundary (imperative shell).

The ledger never holds assets itself. It asks an `AssetCustodian` to pull
deposits into custody and to push payouts out of it, and treats any failure
as a hard abort of the enclosing operation.

`InMemoryCustodian` is the reference implementation backed by a
`BalanceTable`. It models the asset behaviours the ledger must survive:
- fee-on-transfer assets (`fee_bps`): the receiver gets less than was sent,
- recipients that cannot receive (`blocked`) and a global `paused` switch,
- a post-transfer hook (`on_transfer`), which is how an asset can call back
  into the ledger in the middle of a payout.
A transfer either completes together with its hook or leaves balances as they
were.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

from ..core.vesting.errors import TransferFailed
from ..state.balances import AssetId, Amount, BalanceTable, PubKey
from ..state.canonical import canonical_asset_id, canonical_pubkey

logger = logging.getLogger("vesting.integration.custodian")

BPS_SCALE = 10_000


class AssetCustodian:
    """Interface for the deposit / withdraw boundary."""

    @property
    def custody_address(self) -> PubKey:
        raise NotImplementedError

    def balance_of(self, holder: PubKey, asset: Optional[AssetId] = None) -> Amount:
        raise NotImplementedError

    def pull(self, source: PubKey, amount: Amount) -> None:
        """Move *amount* of the managed asset from *source* into custody."""
        raise NotImplementedError

    def push(self, to: PubKey, amount: Amount, asset: Optional[AssetId] = None) -> None:
        """Move *amount* out of custody to *to*."""
        raise NotImplementedError


@dataclass(frozen=True)
class TransferRecord:
    kind: str  # "pull" | "push"
    source: PubKey
    dest: PubKey
    asset: AssetId
    amount: Amount
    received: Amount


TransferHook = Callable[[TransferRecord], None]


class InMemoryCustodian(AssetCustodian):
    def __init__(
        self,
        managed_asset: AssetId,
        custody_address: PubKey,
        *,
        balances: Optional[BalanceTable] = None,
        fee_bps: int = 0,
        fee_collector: Optional[PubKey] = None,
        on_transfer: Optional[TransferHook] = None,
    ) -> None:
        if not isinstance(fee_bps, int) or isinstance(fee_bps, bool) or not 0 <= fee_bps < BPS_SCALE:
            raise ValueError("fee_bps must be an int in [0, 10000)")
        self._asset = canonical_asset_id(managed_asset, name="managed_asset")
        self._custody = canonical_pubkey(custody_address, name="custody_address")
        self._balances = balances if balances is not None else BalanceTable()
        self._fee_bps = fee_bps
        self._fee_collector = canonical_pubkey(fee_collector, name="fee_collector") if fee_collector else None
        self.on_transfer = on_transfer
        self.paused = False
        self.blocked: Set[PubKey] = set()
        self.transfers: List[TransferRecord] = []

    @property
    def custody_address(self) -> PubKey:
        return self._custody

    @property
    def managed_asset(self) -> AssetId:
        return self._asset

    @property
    def balances(self) -> BalanceTable:
        return self._balances

    def mint(self, holder: PubKey, amount: Amount, asset: Optional[AssetId] = None) -> None:
        """Credit an external balance (funding accounts outside the ledger)."""
        self._balances.credit(canonical_pubkey(holder, name="holder"), self._resolve_asset(asset), amount)

    def balance_of(self, holder: PubKey, asset: Optional[AssetId] = None) -> Amount:
        return self._balances.get(canonical_pubkey(holder, name="holder"), self._resolve_asset(asset))

    def pull(self, source: PubKey, amount: Amount) -> None:
        self._transfer("pull", source, self._custody, self._asset, amount)

    def push(self, to: PubKey, amount: Amount, asset: Optional[AssetId] = None) -> None:
        self._transfer("push", self._custody, to, self._resolve_asset(asset), amount)

    def _resolve_asset(self, asset: Optional[AssetId]) -> AssetId:
        if asset is None:
            return self._asset
        return canonical_asset_id(asset)

    def _fee_for(self, asset: AssetId, amount: Amount) -> Amount:
        if asset != self._asset or self._fee_bps == 0:
            return 0
        return (amount * self._fee_bps) // BPS_SCALE

    def _transfer(self, kind: str, source: PubKey, dest: PubKey, asset: AssetId, amount: Amount) -> None:
        if self.paused:
            raise TransferFailed(f"{kind}: custodian paused")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise TransferFailed(f"{kind}: amount must be a positive int")
        try:
            source = canonical_pubkey(source, name="source")
            dest = canonical_pubkey(dest, name="dest")
        except (TypeError, ValueError) as exc:
            raise TransferFailed(f"{kind}: {exc}") from exc
        if dest in self.blocked:
            raise TransferFailed(f"{kind}: recipient {dest} cannot receive")

        snapshot = self._balances.copy()
        fee = self._fee_for(asset, amount)
        try:
            self._balances.debit(source, asset, amount)
        except ValueError as exc:
            raise TransferFailed(f"{kind}: {exc}") from exc
        self._balances.credit(dest, asset, amount - fee)
        if fee and self._fee_collector is not None:
            self._balances.credit(self._fee_collector, asset, fee)

        record = TransferRecord(kind=kind, source=source, dest=dest, asset=asset, amount=amount, received=amount - fee)
        self.transfers.append(record)
        logger.debug("%s %s -> %s: %s (fee %s)", kind, source, dest, amount, fee)

        if self.on_transfer is None:
            return
        try:
            self.on_transfer(record)
        except Exception:
            self._balances.restore(snapshot)
            self.transfers.pop()
            logger.warning("%s to %s reverted: transfer hook raised", kind, dest)
            raise
