"""Dispatch-table engine for the vesting ledger.

``step(state, params)`` is the single entry point. It:

1. Validates parameter domains (amount / timestamp bounds).
2. Rejects evaluation times earlier than the ledger's last step.
3. Dispatches to the correct guard / update / effect functions.
4. Checks all invariants on the post-state.
5. Returns a ``StepResult`` (accepted or rejected with reason).

The engine is pure: it never moves assets. Accepted results carry the
outgoing transfers in ``Effect.transfers`` for the shell to perform.
"""

from __future__ import annotations

from typing import Callable

from .effects import effect_create_lock, effect_release, effect_revoke
from .errors import (
    AlreadyRevoked,
    ClockRegression,
    DuplicateLock,
    InvalidArgument,
    LockRevoked,
    NoLock,
    NothingToRelease,
    NotRevocable,
    VestingError,
    VestingInvariantError,
    VestingOverflowError,
)
from .guards import guard_clock, guard_create_lock, guard_release, guard_revoke
from .invariants import check_all
from .math import MAX_AMOUNT, MAX_TIMESTAMP
from .types import Action, ActionParams, Effect, LedgerState, StepResult
from .updates import apply_create_lock, apply_release, apply_revoke

GuardFn = Callable[[LedgerState, ActionParams], str | None]
UpdateFn = Callable[[LedgerState, ActionParams], LedgerState]
EffectFn = Callable[[LedgerState, LedgerState, ActionParams], Effect]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn, EffectFn]] = {
    Action.CREATE_LOCK: (guard_create_lock, apply_create_lock, effect_create_lock),
    Action.RELEASE: (guard_release, apply_release, effect_release),
    Action.REVOKE: (guard_revoke, apply_revoke, effect_revoke),
}

# -- Parameter domain bounds -------------------------------------------------

# Per-action upper bounds: list of (field_name, max_val). Lower bounds that the
# caller can correct (zero amount, zero duration) are guard failures instead.
_PARAM_BOUNDS: dict[Action, list[tuple[str, int]]] = {
    Action.CREATE_LOCK: [
        ("amount", MAX_AMOUNT),
        ("start_time", MAX_TIMESTAMP),
        ("duration", MAX_TIMESTAMP),
        ("cliff", MAX_TIMESTAMP),
    ],
    Action.RELEASE: [],
    Action.REVOKE: [],
}

_REJECTION_ERRORS: dict[str, type[VestingError]] = {
    "invalid_argument": InvalidArgument,
    "duplicate_lock": DuplicateLock,
    "no_lock": NoLock,
    "already_revoked": AlreadyRevoked,
    "not_revocable": NotRevocable,
    "lock_revoked": LockRevoked,
    "nothing_to_release": NothingToRelease,
    "clock_regression": ClockRegression,
    "param_domain": VestingOverflowError,
}


def _validate_params(params: ActionParams) -> str | None:
    """Check parameter domain bounds. Returns rejection reason or None."""
    if params.now < 0 or params.now > MAX_TIMESTAMP:
        return "param_domain:now"
    for field, hi in _PARAM_BOUNDS.get(params.action, []):
        if getattr(params, field) > hi:
            return f"param_domain:{field}"
    if params.action is Action.CREATE_LOCK and params.start_time + params.duration > MAX_TIMESTAMP:
        return "param_domain:end_time"
    return None


def step(state: LedgerState, params: ActionParams) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    domain_err = _validate_params(params)
    if domain_err is not None:
        return StepResult(accepted=False, rejection=domain_err)

    clock_err = guard_clock(state, params)
    if clock_err is not None:
        return StepResult(accepted=False, rejection=clock_err)

    guard_fn, update_fn, effect_fn = entry

    rejection = guard_fn(state, params)
    if rejection is not None:
        return StepResult(accepted=False, rejection=rejection)

    new_state = update_fn(state, params)

    violations = check_all(new_state)
    if violations:
        return StepResult(
            accepted=False,
            rejection=f"invariant:{','.join(violations)}",
        )

    effect = effect_fn(state, new_state, params)
    return StepResult(accepted=True, state=new_state, effect=effect)


def raise_for_rejection(result: StepResult) -> None:
    """Raise the exception matching a rejected ``StepResult`` (no-op if accepted)."""
    if result.accepted:
        return

    reason = result.rejection or ""
    if reason.startswith("invariant:"):
        violations = reason.removeprefix("invariant:").split(",")
        raise VestingInvariantError(violations)
    code = reason.partition(":")[0]
    exc_type = _REJECTION_ERRORS.get(code)
    if exc_type is None:
        raise VestingError(reason)
    raise exc_type(reason)


def step_or_raise(state: LedgerState, params: ActionParams) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        InvalidArgument: Bad schedule parameters or identity.
        DuplicateLock, NoLock, AlreadyRevoked, NotRevocable, LockRevoked,
        NothingToRelease: State precondition not satisfied.
        ClockRegression: ``params.now`` is earlier than ``state.now``.
        VestingOverflowError: Parameter outside domain bounds.
        VestingInvariantError: Post-state violates one or more invariants.
    """
    result = step(state, params)
    raise_for_rejection(result)
    return result
