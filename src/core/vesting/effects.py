"""Effect functions for the vesting engine.

One pure function per action. Each computes the ``Effect`` from the PRE- and
POST-state: the event to publish and the outgoing transfers the shell performs
after it has committed the post-state.
"""

from __future__ import annotations

from .types import ActionParams, Effect, Event, LedgerState, Payee, Transfer


def effect_create_lock(pre: LedgerState, post: LedgerState, params: ActionParams) -> Effect:
    return Effect(
        event=Event.LOCK_CREATED,
        beneficiary=params.beneficiary,
        amount=params.amount,
        total_locked_after=post.total_locked,
        lock_after=post.locks.get(params.beneficiary),
    )


def effect_release(pre: LedgerState, post: LedgerState, params: ActionParams) -> Effect:
    before = pre.locks.get(params.beneficiary)
    after = post.locks.get(params.beneficiary)
    amount = after.released_amount - before.released_amount
    return Effect(
        event=Event.RELEASED,
        beneficiary=params.beneficiary,
        amount=amount,
        transfers=(Transfer(payee=Payee.BENEFICIARY, amount=amount),),
        total_locked_after=post.total_locked,
        lock_after=after,
    )


def effect_revoke(pre: LedgerState, post: LedgerState, params: ActionParams) -> Effect:
    before = pre.locks.get(params.beneficiary)
    after = post.locks.get(params.beneficiary)
    refund = before.total_amount - after.total_amount
    transfers = (Transfer(payee=Payee.ADMIN, amount=refund),) if refund > 0 else ()
    return Effect(
        event=Event.REVOKED,
        beneficiary=params.beneficiary,
        refund_amount=refund,
        transfers=transfers,
        total_locked_after=post.total_locked,
        lock_after=after,
    )
