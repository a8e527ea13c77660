"""IdentityManager: named signing identities on top of a keyring.

Test actors are created from literal mnemonics, so their addresses are
known before the network exists. ``provision`` enforces that: a fixture
whose mnemonic derives any address other than the recorded one is a
configuration error, not something to paper over.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from empower_e2e.domain.fixtures import (
    DEFAULT_BIP39_PASSPHRASE,
    FIXTURE_IDENTITIES,
    FULL_FUNDRAISER_PATH,
    IdentityFixture,
)
from empower_e2e.errors import IdentityMismatchError
from empower_e2e.infrastructure.hd import KeyAlgorithm, check_algorithm, derive_address
from empower_e2e.infrastructure.keyring import Keyring, KeyRecord, transfer_passphrase

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SigningIdentity:
    name: str
    address: str
    algorithm: str = KeyAlgorithm.SECP256K1.value
    hd_path: str | None = FULL_FUNDRAISER_PATH
    mnemonic: str | None = None


class IdentityManager:
    """Creates, imports and exports identities in one keyring."""

    def __init__(self, keyring: Keyring, *, prefix: str) -> None:
        self._keyring = keyring
        self._prefix = prefix
        self._identities: dict[str, SigningIdentity] = {}

    @property
    def keyring(self) -> Keyring:
        return self._keyring

    @property
    def identities(self) -> dict[str, SigningIdentity]:
        return dict(self._identities)

    def address(self, name: str) -> str:
        """Address of identity *name*, asking the keyring if it was not created here."""
        if name in self._identities:
            return self._identities[name].address
        return self._keyring.get(name).address

    def create_identity(
        self,
        name: str,
        mnemonic: str,
        passphrase: str = DEFAULT_BIP39_PASSPHRASE,
        hd_path: str = FULL_FUNDRAISER_PATH,
        algorithm: str = KeyAlgorithm.SECP256K1,
    ) -> str:
        """Derive a key from *mnemonic* and store it as *name*. Returns the address.

        Raises:
            DuplicateIdentityError: *name* already exists in the keyring.
            InvalidMnemonicError: The phrase fails BIP-39 validation.
            UnsupportedAlgorithmError: *algorithm* is not secp256k1.
        """
        check_algorithm(algorithm)
        record = self._keyring.add_from_mnemonic(
            name, mnemonic, passphrase=passphrase, hd_path=hd_path, algorithm=algorithm
        )
        self._remember(record, mnemonic=mnemonic, hd_path=hd_path)
        logger.debug("identity_created", name=name, address=record.address)
        return record.address

    def import_identity(self, name: str, armored_key: str, passphrase: str) -> str:
        """Import armored key material as *name*. Returns the address.

        Raises:
            DuplicateIdentityError: *name* already exists in the keyring.
            InvalidArmorError: The armor cannot be parsed.
            DecryptionError: *passphrase* does not decrypt the armor.
        """
        record = self._keyring.import_armor(name, armored_key, passphrase)
        self._remember(record)
        logger.debug("identity_imported", name=name, address=record.address)
        return record.address

    def export_identity(self, name: str, passphrase: str) -> str:
        """Armor identity *name* under *passphrase*."""
        return self._keyring.export_armor(name, passphrase)

    def copy_identity(self, name: str, source: Keyring) -> str:
        """Copy *name* from *source* (e.g. another validator's keyring) into this one."""
        passphrase = transfer_passphrase()
        armor = source.export_armor(name, passphrase)
        return self.import_identity(name, armor, passphrase)

    def provision(
        self, fixtures: Iterable[IdentityFixture] = FIXTURE_IDENTITIES
    ) -> dict[str, str]:
        """Create every fixture identity and check it lands on its recorded address.

        A fixture already present in the keyring is checked, not re-created.

        Raises:
            IdentityMismatchError: A mnemonic derives a different address.
        """
        provisioned: dict[str, str] = {}
        for fixture in fixtures:
            derived = derive_address(fixture.mnemonic, prefix=self._prefix, hd_path=fixture.hd_path)
            if derived != fixture.address:
                raise IdentityMismatchError(fixture.name, fixture.address, derived)

            if self._keyring.has(fixture.name):
                record = self._keyring.get(fixture.name)
                self._remember(record, mnemonic=fixture.mnemonic, hd_path=fixture.hd_path)
            else:
                self.create_identity(fixture.name, fixture.mnemonic, hd_path=fixture.hd_path)
                record = self._keyring.get(fixture.name)

            if record.address != fixture.address:
                raise IdentityMismatchError(fixture.name, fixture.address, record.address)
            provisioned[fixture.name] = record.address
        logger.info("identities_provisioned", count=len(provisioned))
        return provisioned

    def _remember(
        self,
        record: KeyRecord,
        *,
        mnemonic: str | None = None,
        hd_path: str | None = None,
    ) -> None:
        self._identities[record.name] = SigningIdentity(
            name=record.name,
            address=record.address,
            algorithm=record.algorithm,
            hd_path=hd_path or record.hd_path,
            mnemonic=mnemonic,
        )
