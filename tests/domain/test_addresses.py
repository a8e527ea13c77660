"""Tests for bech32 account and module addresses."""

import pytest

from empower_e2e.domain.addresses import (
    address_from_pubkey,
    decode_address,
    encode_address,
    is_valid_address,
    module_address,
)
from empower_e2e.domain.fixtures import ISSUER_ADDRESS


class TestBech32:
    def test_round_trip(self) -> None:
        raw = bytes(range(20))
        assert decode_address(encode_address("empower", raw), prefix="empower") == raw

    def test_wrong_prefix(self) -> None:
        with pytest.raises(ValueError, match="prefix"):
            decode_address(ISSUER_ADDRESS, prefix="cosmos")

    def test_bad_checksum(self) -> None:
        corrupted = ISSUER_ADDRESS[:-1] + ("q" if ISSUER_ADDRESS[-1] != "q" else "p")
        with pytest.raises(ValueError, match="Invalid bech32"):
            decode_address(corrupted)

    def test_is_valid_address(self) -> None:
        assert is_valid_address(ISSUER_ADDRESS, "empower")
        assert not is_valid_address(ISSUER_ADDRESS, "cosmos")
        assert not is_valid_address(encode_address("empower", b"\x01" * 32), "empower")


class TestModuleAddress:
    @pytest.mark.parametrize(
        ("module", "data_part"),
        [
            # Same payload as cosmos10d07y265gmmuvt4z0w9aw880jnsr700j6zn9kn.
            ("gov", "0d07y265gmmuvt4z0w9aw880jnsr700j"),
            # Same payload as cosmos1jv65s3grqf6v6jl3dp4t6c9t9rk99cd88lyufl.
            ("distribution", "jv65s3grqf6v6jl3dp4t6c9t9rk99cd8"),
        ],
    )
    def test_well_known_modules(self, module: str, data_part: str) -> None:
        address = encode_address("empower", module_address(module))
        assert address.startswith(f"empower1{data_part}")


class TestPubkeyAddress:
    def test_rejects_uncompressed_key(self) -> None:
        with pytest.raises(ValueError, match="33-byte"):
            address_from_pubkey(b"\x04" + b"\x00" * 64)

    def test_twenty_bytes(self) -> None:
        assert len(address_from_pubkey(b"\x02" + b"\x11" * 32)) == 20
