"""Bech32 account addresses.

An account address is ``ripemd160(sha256(compressed_secp256k1_pubkey))``;
a module account address is ``sha256(module_name)[:20]``. Both are
rendered as bech32 with the chain's human-readable prefix.
"""

from __future__ import annotations

import hashlib

import bech32
from Crypto.Hash import RIPEMD160

ADDRESS_LENGTH = 20


def encode_address(prefix: str, raw: bytes) -> str:
    """Render *raw* address bytes as bech32 under *prefix*."""
    data = bech32.convertbits(raw, 8, 5)
    if data is None:
        msg = f"Cannot convert {len(raw)} address bytes to bech32"
        raise ValueError(msg)
    return bech32.bech32_encode(prefix, data)


def decode_address(address: str, *, prefix: str | None = None) -> bytes:
    """Decode a bech32 address back to raw bytes.

    Raises:
        ValueError: If the checksum fails or the prefix does not match.
    """
    hrp, data = bech32.bech32_decode(address)
    if hrp is None or data is None:
        msg = f"Invalid bech32 address: {address!r}"
        raise ValueError(msg)
    if prefix is not None and hrp != prefix:
        msg = f"Address {address!r} has prefix {hrp!r}, expected {prefix!r}"
        raise ValueError(msg)
    raw = bech32.convertbits(data, 5, 8, False)
    if raw is None:
        msg = f"Invalid bech32 payload in {address!r}"
        raise ValueError(msg)
    return bytes(raw)


def address_from_pubkey(compressed_pubkey: bytes) -> bytes:
    """Derive the 20-byte account address of a compressed secp256k1 key."""
    if len(compressed_pubkey) != 33:
        msg = f"Expected a 33-byte compressed public key, got {len(compressed_pubkey)} bytes"
        raise ValueError(msg)
    sha = hashlib.sha256(compressed_pubkey).digest()
    return RIPEMD160.new(sha).digest()


def module_address(module_name: str) -> bytes:
    """Derive the 20-byte address of a module account (e.g. ``distribution``)."""
    return hashlib.sha256(module_name.encode("utf-8")).digest()[:ADDRESS_LENGTH]


def is_valid_address(address: str, prefix: str) -> bool:
    """Check that *address* is a 20-byte bech32 address under *prefix*."""
    try:
        return len(decode_address(address, prefix=prefix)) == ADDRESS_LENGTH
    except ValueError:
        return False
