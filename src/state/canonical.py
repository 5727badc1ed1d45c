"""
Deterministic canonical encoding primitives.

Used for state commitments, snapshot hashing and the byte strings an
administrator signs. Identities are fixed-size hex strings:
- `PubKey`: 48-byte BLS12-381 G1 public key,
- `AssetId`: 32-byte asset identifier.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

PUBKEY_NBYTES = 48
ASSET_ID_NBYTES = 32

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing/signing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (amounts are integers; floats would be ambiguous)
    """
    _reject_floats(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Domain separation prefix: ``b"vesting:" + label + b":v<version>\\x00"``.

    The NUL terminator keeps concatenation with the payload unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label or not label.isascii():
        raise ValueError("label must be ASCII without NUL")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"vesting:" + label.encode("ascii") + b":v" + str(version).encode("ascii") + b"\x00"


def encode_uvarint(value: int) -> bytes:
    """Unsigned LEB128."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"uvarint must be a non-negative int, got {value!r}")
    out = bytearray()
    n = value
    while True:
        byte = n & 0x7F
        n >>= 7
        if not n:
            out.append(byte)
            return bytes(out)
        out.append(byte | 0x80)


def encode_bytes(value: bytes) -> bytes:
    """Length-prefixed byte string."""
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError("value must be bytes")
    return encode_uvarint(len(value)) + bytes(value)


def canonical_hex_fixed_allow_0x(hex_str: str, *, nbytes: int, name: str) -> str:
    """
    Canonicalize a fixed-size hex string (lowercase, 0x-prefixed).

    Accepts either 0x-prefixed or raw hex input.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    body = hex_str.strip()
    if body[:2].lower() == "0x":
        body = body[2:]
    if len(body) != 2 * nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {2 * nbytes})")
    if not _HEX_CHARS_RE.fullmatch(body):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + body.lower()


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int, name: str) -> bytes:
    return bytes.fromhex(canonical_hex_fixed_allow_0x(hex_str, nbytes=nbytes, name=name)[2:])


def canonical_pubkey(value: str, *, name: str = "pubkey") -> str:
    return canonical_hex_fixed_allow_0x(value, nbytes=PUBKEY_NBYTES, name=name)


def canonical_asset_id(value: str, *, name: str = "asset") -> str:
    return canonical_hex_fixed_allow_0x(value, nbytes=ASSET_ID_NBYTES, name=name)
