"""
Custodial vesting ledger (imperative shell).

This wraps the functional core (`src/core/vesting`) with everything that has
side effects:
- authorization of admin-only operations (`AdminGuard`),
- asset movement through an `AssetCustodian`,
- single-entry protection (`ReentrancyGuard`),
- event delivery (`EventSink`) and logging.

Ordering rules for every mutator:
1. enter the reentrancy guard, authorize, validate (engine dry run);
2. commit the new `LedgerState` (effects) before any payout (interaction);
3. if the payout fails, restore the previous state and re-raise, so an
   operation either completes or leaves no trace;
4. emit the event once the guard has been released.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional

from ..core.vesting.engine import raise_for_rejection, step
from ..core.vesting.errors import InvalidArgument, VestingError, VestingInvariantError
from ..core.vesting.invariants import check_all
from ..core.vesting.math import releasable_amount, vested_amount
from ..core.vesting.state import initial_state
from ..core.vesting.types import Action, ActionParams, LedgerState, Lock, Payee, PubKey, StepResult
from ..state.canonical import canonical_asset_id
from ..state.nonces import NonceTable
from ..state.state_root import compute_state_root
from .admin import AdminAuthorization, AdminGuard, canonical_identity
from .config import LedgerConfig
from .custodian import AssetCustodian
from .events import (
    AdminTransferred,
    AssetRecovered,
    EventSink,
    LedgerEvent,
    LockCreated,
    NullEventSink,
    Released,
    Revoked,
)
from .ledger_snapshot import LedgerSnapshot, restore_parts, snapshot_from_parts
from .reentrancy import ReentrancyGuard

logger = logging.getLogger("vesting.integration.ledger")

Clock = Callable[[], int]


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidArgument(f"{name} must be an int")
    return int(value)


class VestingLedger:
    def __init__(
        self,
        config: LedgerConfig,
        custodian: AssetCustodian,
        *,
        clock: Optional[Clock] = None,
        event_sink: Optional[EventSink] = None,
        state: Optional[LedgerState] = None,
        admin: Optional[PubKey] = None,
        nonces: Optional[NonceTable] = None,
    ) -> None:
        self._config = config
        self._custodian = custodian
        self._clock: Clock = clock or (lambda: int(time.time()))
        self._events: EventSink = event_sink or NullEventSink()
        self._state = state if state is not None else initial_state()
        self._guard = ReentrancyGuard()
        self._admin = AdminGuard(
            admin or config.admin,
            chain_id=config.chain_id,
            require_signatures=config.require_admin_signatures,
            nonces=nonces,
        )
        violations = check_all(self._state)
        if violations:
            raise VestingInvariantError(violations)
        logger.info(
            "VestingLedger initialized for asset %s (admin %s, %d locks)",
            config.managed_asset,
            self._admin.admin,
            len(self._state.locks),
        )

    # ------------------------------------------------------------------
    # Queries (no authorization, no side effects)
    # ------------------------------------------------------------------

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def custodian(self) -> AssetCustodian:
        return self._custodian

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def nonces(self) -> NonceTable:
        return self._admin.nonces

    def managed_asset(self) -> str:
        return self._config.managed_asset

    def admin(self) -> PubKey:
        return self._admin.admin

    def total_locked(self) -> int:
        return self._state.total_locked

    def now(self) -> int:
        """Ledger time: the clock, but never earlier than the last committed step."""
        timestamp = self._clock()
        try:
            timestamp = int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("clock must return an integer timestamp") from exc
        return max(timestamp, self._state.now)

    def get_lock(self, beneficiary: PubKey) -> Optional[Lock]:
        return self._state.locks.get(canonical_identity(beneficiary, name="beneficiary"))

    def vested_amount(self, beneficiary: PubKey, timestamp: Optional[int] = None) -> int:
        when = self.now() if timestamp is None else _require_int(timestamp, name="timestamp")
        return vested_amount(self.get_lock(beneficiary), when)

    def releasable_amount(self, beneficiary: PubKey) -> int:
        return releasable_amount(self.get_lock(beneficiary), self.now())

    def state_root(self) -> str:
        return compute_state_root(self._state, managed_asset=self._config.managed_asset)

    def check_invariants(self) -> list[str]:
        """Engine invariants plus custody reconciliation (held >= total_locked)."""
        violations = check_all(self._state)
        held = self._custodian.balance_of(self._custodian.custody_address)
        if held < self._state.total_locked:
            violations.append("inv_custody_covers_total_locked")
        return violations

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def create_lock(
        self,
        caller: PubKey,
        beneficiary: PubKey,
        amount: int,
        start_time: int,
        duration: int,
        cliff: int = 0,
        revocable: bool = False,
        *,
        auth: Optional[AdminAuthorization] = None,
    ) -> Lock:
        """
        Deposit *amount* from *caller* (the administrator) and lock it for
        *beneficiary*. The recorded amount is what custody actually received.
        """
        with self._guard.enter("create_lock"):
            signer = self._admin.admin
            # Arguments are validated and canonicalized before they are signed over.
            key = canonical_identity(beneficiary, name="beneficiary")
            if not isinstance(revocable, bool):
                raise InvalidArgument("revocable must be a bool")
            params = ActionParams(
                action=Action.CREATE_LOCK,
                beneficiary=key,
                amount=_require_int(amount, name="amount"),
                start_time=_require_int(start_time, name="start_time"),
                duration=_require_int(duration, name="duration"),
                cliff=_require_int(cliff, name="cliff"),
                revocable=revocable,
            )
            payload = {
                "beneficiary": key,
                "amount": params.amount,
                "start_time": params.start_time,
                "duration": params.duration,
                "cliff": params.cliff,
                "revocable": params.revocable,
            }
            nonce = self._admin.require_admin(caller, action="create_lock", payload=payload, auth=auth)
            params = replace(params, now=self.now())
            # Dry run with the requested amount: every argument and state check
            # happens before any asset moves.
            self._step(params, "create_lock")

            custody = self._custodian.custody_address
            held_before = self._custodian.balance_of(custody)
            self._custodian.pull(signer, params.amount)
            received = self._custodian.balance_of(custody) - held_before
            if received != params.amount:
                logger.info("create_lock for %s: requested %s, custody received %s", key, params.amount, received)

            try:
                if received <= 0:
                    raise InvalidArgument("custody received nothing for create_lock")
                result = self._step(replace(params, amount=received), "create_lock")
            except VestingError as exc:
                if received > 0:
                    logger.warning("create_lock for %s rejected after deposit (%s); refunding %s", key, exc, received)
                    try:
                        self._custodian.push(signer, received)
                    except Exception as refund_exc:
                        logger.error("Refund of %s to %s failed; it remains in custody untracked", received, signer)
                        raise refund_exc from exc
                raise
            self._state = result.state
            self._admin.commit_nonce(signer, nonce)
            self._verify_custody("create_lock")

        lock = result.effect.lock_after
        logger.info("Lock created for %s: %s over %ss (cliff %ss)", key, lock.total_amount, lock.duration, lock.cliff)
        self._emit(
            LockCreated(
                beneficiary=key,
                amount=lock.total_amount,
                start_time=lock.start_time,
                duration=lock.duration,
                cliff=lock.cliff,
                revocable=lock.revocable,
            )
        )
        return lock

    def release(self, beneficiary: PubKey) -> int:
        """Pay the releasable amount to *beneficiary*. Callable by anyone."""
        with self._guard.enter("release"):
            key = canonical_identity(beneficiary, name="beneficiary")
            result = self._step(ActionParams(action=Action.RELEASE, beneficiary=key, now=self.now()), "release")
            self._commit(result, payees={Payee.BENEFICIARY: key}, operation="release")

        amount = result.effect.amount
        logger.info("Released %s to %s", amount, key)
        self._emit(Released(beneficiary=key, amount=amount))
        return amount

    def revoke(self, caller: PubKey, beneficiary: PubKey, *, auth: Optional[AdminAuthorization] = None) -> int:
        """Stop vesting for *beneficiary* and refund the unvested remainder to the administrator."""
        with self._guard.enter("revoke"):
            signer = self._admin.admin
            key = canonical_identity(beneficiary, name="beneficiary")
            nonce = self._admin.require_admin(caller, action="revoke", payload={"beneficiary": key}, auth=auth)
            result = self._step(ActionParams(action=Action.REVOKE, beneficiary=key, now=self.now()), "revoke")
            self._commit(result, payees={Payee.ADMIN: signer}, operation="revoke")
            self._admin.commit_nonce(signer, nonce)

        refund = result.effect.refund_amount
        logger.info("Revoked lock of %s: refunded %s, %s remains vested", key, refund, result.effect.lock_after.total_amount)
        self._emit(Revoked(beneficiary=key, refund_amount=refund))
        return refund

    def recover_misdirected_asset(
        self, caller: PubKey, asset_id: str, to: PubKey, *, auth: Optional[AdminAuthorization] = None
    ) -> int:
        """Send custody's full balance of a foreign asset to *to*. Never the managed asset."""
        with self._guard.enter("recover_misdirected_asset"):
            signer = self._admin.admin
            try:
                asset = canonical_asset_id(asset_id, name="asset_id")
            except (TypeError, ValueError) as exc:
                raise InvalidArgument(str(exc)) from exc
            dest = canonical_identity(to, name="to")
            nonce = self._admin.require_admin(
                caller,
                action="recover_misdirected_asset",
                payload={"asset": asset, "to": dest},
                auth=auth,
            )
            if asset == self._config.managed_asset:
                logger.warning("Refused to recover the managed asset %s", asset)
                raise InvalidArgument("cannot recover the managed asset")

            amount = self._custodian.balance_of(self._custodian.custody_address, asset)
            if amount > 0:
                self._custodian.push(dest, amount, asset=asset)
            self._admin.commit_nonce(signer, nonce)

        if amount > 0:
            logger.info("Recovered %s of asset %s to %s", amount, asset, dest)
            self._emit(AssetRecovered(asset=asset, to=dest, amount=amount))
        return amount

    def transfer_admin(self, caller: PubKey, new_admin: PubKey, *, auth: Optional[AdminAuthorization] = None) -> PubKey:
        """Hand the administrator role to *new_admin*; returns the new admin."""
        with self._guard.enter("transfer_admin"):
            signer = self._admin.admin
            new = canonical_identity(new_admin, name="new_admin")
            nonce = self._admin.require_admin(caller, action="transfer_admin", payload={"new_admin": new}, auth=auth)
            previous = self._admin.transfer(new)
            self._admin.commit_nonce(signer, nonce)

        logger.info("Administrator changed from %s to %s", previous, new)
        self._emit(AdminTransferred(previous=previous, new=new))
        return new

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        return snapshot_from_parts(
            config=self._config,
            state=self._state,
            admin=self._admin.admin,
            nonces=self._admin.nonces,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Mapping[str, Any],
        custodian: AssetCustodian,
        *,
        clock: Optional[Clock] = None,
        event_sink: Optional[EventSink] = None,
    ) -> "VestingLedger":
        parts = restore_parts(snapshot)
        return cls(
            parts.config,
            custodian,
            clock=clock,
            event_sink=event_sink,
            state=parts.state,
            admin=parts.admin,
            nonces=parts.nonces,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _step(self, params: ActionParams, operation: str) -> StepResult:
        result = step(self._state, params)
        if not result.accepted:
            logger.warning("%s rejected for %s: %s", operation, params.beneficiary, result.rejection)
            raise_for_rejection(result)
        return result

    def _commit(self, result: StepResult, *, payees: Dict[Payee, PubKey], operation: str) -> None:
        previous = self._state
        self._state = result.state
        try:
            for transfer in result.effect.transfers:
                if transfer.amount > 0:
                    self._custodian.push(payees[transfer.payee], transfer.amount)
        except Exception:
            self._state = previous
            logger.warning("%s for %s rolled back: payout failed", operation, result.effect.beneficiary)
            raise
        self._verify_custody(operation)

    def _verify_custody(self, operation: str) -> None:
        if not self._config.verify_custody:
            return
        held = self._custodian.balance_of(self._custodian.custody_address)
        if held < self._state.total_locked:
            logger.error(
                "Custody shortfall after %s: holds %s but %s is locked",
                operation,
                held,
                self._state.total_locked,
            )

    def _emit(self, event: LedgerEvent) -> None:
        try:
            self._events.emit(event)
        except Exception:
            logger.exception("Event sink failed on %s", event.kind.value)
