"""BIP-39 / BIP-44 key derivation for secp256k1 identities.

eth-account implements the mnemonic checksum, seed stretching and BIP-32
derivation; the path is generic, so the chain's coin type (118) works the
same way Ethereum's does. Addresses are then rendered the chain's way
(see :mod:`empower_e2e.domain.addresses`).
"""

from __future__ import annotations

from enum import StrEnum

from eth_account import Account
from eth_keys import keys
from eth_utils import ValidationError

from empower_e2e.domain.addresses import address_from_pubkey, encode_address
from empower_e2e.domain.fixtures import DEFAULT_BIP39_PASSPHRASE, FULL_FUNDRAISER_PATH
from empower_e2e.errors import InvalidMnemonicError, UnsupportedAlgorithmError

Account.enable_unaudited_hdwallet_features()


class KeyAlgorithm(StrEnum):
    SECP256K1 = "secp256k1"


def check_algorithm(algorithm: str) -> KeyAlgorithm:
    """Return the algorithm enum, or raise for anything but secp256k1."""
    try:
        return KeyAlgorithm(algorithm)
    except ValueError:
        raise UnsupportedAlgorithmError(algorithm) from None


def derive_private_key(
    mnemonic: str,
    passphrase: str = DEFAULT_BIP39_PASSPHRASE,
    hd_path: str = FULL_FUNDRAISER_PATH,
) -> bytes:
    """Derive the 32-byte private key at *hd_path*.

    Raises:
        InvalidMnemonicError: Unknown words or a failed checksum.
    """
    try:
        account = Account.from_mnemonic(mnemonic, passphrase=passphrase, account_path=hd_path)
    except (ValidationError, ValueError) as exc:
        msg = f"Invalid mnemonic or derivation path: {exc}"
        raise InvalidMnemonicError(msg) from exc
    return bytes(account.key)


def compressed_public_key(private_key: bytes) -> bytes:
    """33-byte SEC1 compressed public key for *private_key*."""
    return keys.PrivateKey(private_key).public_key.to_compressed_bytes()


def address_for_private_key(private_key: bytes, prefix: str) -> str:
    return encode_address(prefix, address_from_pubkey(compressed_public_key(private_key)))


def derive_address(
    mnemonic: str,
    *,
    prefix: str,
    passphrase: str = DEFAULT_BIP39_PASSPHRASE,
    hd_path: str = FULL_FUNDRAISER_PATH,
) -> str:
    """Bech32 address the chain will assign to *mnemonic* at *hd_path*."""
    return address_for_private_key(derive_private_key(mnemonic, passphrase, hd_path), prefix)
