"""
Administrator authorization (imperative shell).

`AdminGuard.require_admin()` is the single gate in front of every admin-only
ledger operation. Two policies:

- identity only (default): the caller pubkey must equal the administrator.
- signed commands (`require_signatures=True`): the caller must also present an
  `AdminAuthorization` carrying a strictly sequential nonce and a BLS12-381
  signature (py_ecc `G2Basic`) by the administrator key over

      SHA256( domain_sep(f"vesting_admin:{chain_id}", v1)
              || canonical_json_bytes({"action", "admin", "nonce", "payload"}) )

  Nonces are tracked per administrator in a `NonceTable`, so a captured
  authorization cannot be replayed.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from py_ecc.bls import G2Basic

from ..core.vesting.errors import InvalidArgument, Unauthorized
from ..core.vesting.store import is_null_identity
from ..state.balances import PubKey
from ..state.canonical import canonical_hex_fixed_allow_0x, canonical_json_bytes, canonical_pubkey, domain_sep_bytes
from ..state.nonces import MAX_NONCE, NonceTable

logger = logging.getLogger("vesting.integration.admin")

SIGNATURE_NBYTES = 96


@dataclass(frozen=True)
class AdminAuthorization:
    nonce: int
    signature: str  # 0x-prefixed 96-byte G2 signature


def admin_signing_payload(
    *, admin: PubKey, action: str, payload: Mapping[str, Any], nonce: int, chain_id: str
) -> bytes:
    """Bytes whose SHA-256 digest the administrator signs."""
    body = {
        "action": action,
        "admin": canonical_pubkey(admin, name="admin"),
        "nonce": nonce,
        "payload": dict(payload),
    }
    return domain_sep_bytes(f"vesting_admin:{chain_id}", version=1) + canonical_json_bytes(body)


def sign_admin_command(
    secret_key: int, *, admin: PubKey, action: str, payload: Mapping[str, Any], nonce: int, chain_id: str
) -> AdminAuthorization:
    """Produce an `AdminAuthorization` (for admin tooling and tests)."""
    message = admin_signing_payload(admin=admin, action=action, payload=payload, nonce=nonce, chain_id=chain_id)
    sig = G2Basic.Sign(secret_key, hashlib.sha256(message).digest())
    return AdminAuthorization(nonce=nonce, signature="0x" + sig.hex())


def verify_admin_signature(*, admin: PubKey, signature: str, message: bytes) -> bool:
    try:
        pubkey_bytes = bytes.fromhex(canonical_pubkey(admin, name="admin")[2:])
        sig_hex = canonical_hex_fixed_allow_0x(signature, nbytes=SIGNATURE_NBYTES, name="signature")
        return bool(G2Basic.Verify(pubkey_bytes, hashlib.sha256(message).digest(), bytes.fromhex(sig_hex[2:])))
    except (TypeError, ValueError) as exc:
        logger.debug("Malformed admin signature: %s", exc)
        return False


def canonical_identity(value: Optional[str], *, name: str) -> PubKey:
    """Canonicalize a non-null pubkey, raising `InvalidArgument` otherwise."""
    if value is None or is_null_identity(value):
        raise InvalidArgument(f"{name} must be a non-null identity")
    try:
        identity = canonical_pubkey(value, name=name)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(str(exc)) from exc
    if is_null_identity(identity):
        raise InvalidArgument(f"{name} must be a non-null identity")
    return identity


class AdminGuard:
    def __init__(
        self,
        admin: PubKey,
        *,
        chain_id: str = "vesting-local",
        require_signatures: bool = False,
        nonces: Optional[NonceTable] = None,
    ) -> None:
        self._admin = canonical_identity(admin, name="admin")
        self._chain_id = chain_id
        self._require_signatures = require_signatures
        self._nonces = nonces if nonces is not None else NonceTable()

    @property
    def admin(self) -> PubKey:
        return self._admin

    @property
    def nonces(self) -> NonceTable:
        return self._nonces

    @property
    def require_signatures(self) -> bool:
        return self._require_signatures

    def require_admin(
        self,
        caller: Optional[PubKey],
        *,
        action: str,
        payload: Optional[Mapping[str, Any]] = None,
        auth: Optional[AdminAuthorization] = None,
    ) -> Optional[int]:
        """
        Raise `Unauthorized` unless *caller* is the administrator (and, under
        the signed-command policy, *auth* is a fresh valid signature).

        Returns the accepted nonce (None under the identity-only policy). The
        nonce is not consumed here: the ledger calls `commit_nonce()` once the
        operation has succeeded, so a failed operation leaves it reusable.
        """
        try:
            caller_pk = canonical_pubkey(caller, name="caller") if caller is not None else None
        except (TypeError, ValueError):
            caller_pk = None
        if caller_pk != self._admin:
            logger.warning("Unauthorized %s attempt by %s", action, caller)
            raise Unauthorized(f"{action}: caller is not the administrator")

        if not self._require_signatures:
            return None
        if auth is None:
            raise Unauthorized(f"{action}: missing admin authorization")
        expected = self._nonces.next_nonce(self._admin)
        if not isinstance(auth.nonce, int) or isinstance(auth.nonce, bool) or auth.nonce != expected:
            raise Unauthorized(f"{action}: bad nonce (expected {expected})")
        if auth.nonce > MAX_NONCE:
            raise Unauthorized(f"{action}: nonce space exhausted")
        message = admin_signing_payload(
            admin=self._admin, action=action, payload=payload or {}, nonce=auth.nonce, chain_id=self._chain_id
        )
        if not verify_admin_signature(admin=self._admin, signature=auth.signature, message=message):
            logger.warning("Rejected %s: invalid admin signature", action)
            raise Unauthorized(f"{action}: invalid admin signature")
        return auth.nonce

    def commit_nonce(self, signer: PubKey, nonce: Optional[int]) -> None:
        """Record *nonce* as used by *signer* (the admin that authorized it)."""
        if nonce is not None:
            self._nonces.set_last(signer, nonce)

    def transfer(self, new_admin: PubKey) -> PubKey:
        """Hand the administrator role to *new_admin*; returns the previous admin."""
        previous = self._admin
        self._admin = canonical_identity(new_admin, name="new_admin")
        return previous
