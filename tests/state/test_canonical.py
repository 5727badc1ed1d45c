from __future__ import annotations

import pytest

from src.state.canonical import (
    canonical_asset_id,
    canonical_json_bytes,
    canonical_pubkey,
    domain_sep_bytes,
    encode_bytes,
    encode_uvarint,
    hex_to_bytes_fixed,
)


def test_canonical_json_is_sorted_and_compact() -> None:
    assert canonical_json_bytes({"b": 1, "a": [True, None, "x"]}) == b'{"a":[true,null,"x"],"b":1}'


def test_canonical_json_rejects_floats_anywhere() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({"amount": 1.5})
    with pytest.raises(TypeError):
        canonical_json_bytes([1, [2, 3.0]])


def test_canonical_json_rejects_non_str_keys() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({1: "x"})


def test_domain_sep_layout() -> None:
    assert domain_sep_bytes("vesting_state_root") == b"vesting:vesting_state_root:v1\x00"
    assert domain_sep_bytes("x", version=2) == b"vesting:x:v2\x00"


@pytest.mark.parametrize("label, version", [("", 1), ("a\x00b", 1), ("ok", 0), ("ok", True)])
def test_domain_sep_rejects_bad_inputs(label, version) -> None:
    with pytest.raises((TypeError, ValueError)):
        domain_sep_bytes(label, version=version)


@pytest.mark.parametrize(
    "value, encoded",
    [(0, b"\x00"), (1, b"\x01"), (127, b"\x7f"), (128, b"\x80\x01"), (300, b"\xac\x02")],
)
def test_encode_uvarint(value, encoded) -> None:
    assert encode_uvarint(value) == encoded


@pytest.mark.parametrize("value", [-1, True, "1"])
def test_encode_uvarint_rejects(value) -> None:
    with pytest.raises(ValueError):
        encode_uvarint(value)


def test_encode_bytes_is_length_prefixed() -> None:
    assert encode_bytes(b"abc") == b"\x03abc"
    with pytest.raises(TypeError):
        encode_bytes("abc")  # type: ignore[arg-type]


def test_pubkey_canonicalization() -> None:
    raw = "AB" * 48
    assert canonical_pubkey(raw) == "0x" + "ab" * 48
    assert canonical_pubkey("0X" + raw) == "0x" + "ab" * 48
    assert hex_to_bytes_fixed(raw, nbytes=48, name="pk") == bytes([0xAB]) * 48


@pytest.mark.parametrize("value", ["0x" + "ab" * 47, "0x" + "zz" * 48, ""])
def test_pubkey_rejects_malformed(value) -> None:
    with pytest.raises(ValueError):
        canonical_pubkey(value)


def test_pubkey_rejects_non_str() -> None:
    with pytest.raises(TypeError):
        canonical_pubkey(123)  # type: ignore[arg-type]


def test_asset_id_length() -> None:
    assert canonical_asset_id("0x" + "01" * 32) == "0x" + "01" * 32
    with pytest.raises(ValueError):
        canonical_asset_id("0x" + "01" * 48)
