"""Tests for IdentityManager over a LocalKeyring."""

from pathlib import Path

import pytest

from empower_e2e.domain.fixtures import (
    FIXTURE_IDENTITIES,
    ISSUER_ADDRESS,
    ISSUER_KEY,
    IdentityFixture,
)
from empower_e2e.errors import (
    DecryptionError,
    DuplicateIdentityError,
    IdentityMismatchError,
    InvalidMnemonicError,
    UnknownIdentityError,
    UnsupportedAlgorithmError,
)
from empower_e2e.infrastructure.keyring import LocalKeyring
from empower_e2e.services.identity import IdentityManager

ISSUER_MNEMONIC = FIXTURE_IDENTITIES[0].mnemonic


@pytest.fixture
def manager(local_keyring: LocalKeyring) -> IdentityManager:
    return IdentityManager(local_keyring, prefix="empower")


class TestCreateIdentity:
    def test_returns_address(self, manager: IdentityManager) -> None:
        assert manager.create_identity(ISSUER_KEY, ISSUER_MNEMONIC) == ISSUER_ADDRESS
        assert manager.address(ISSUER_KEY) == ISSUER_ADDRESS
        assert manager.identities[ISSUER_KEY].mnemonic == ISSUER_MNEMONIC

    def test_duplicate(self, manager: IdentityManager) -> None:
        manager.create_identity(ISSUER_KEY, ISSUER_MNEMONIC)
        with pytest.raises(DuplicateIdentityError):
            manager.create_identity(ISSUER_KEY, ISSUER_MNEMONIC)

    def test_invalid_mnemonic(self, manager: IdentityManager) -> None:
        with pytest.raises(InvalidMnemonicError):
            manager.create_identity("bad", "abandon " * 11 + "abandon")

    def test_unsupported_algorithm(self, manager: IdentityManager) -> None:
        with pytest.raises(UnsupportedAlgorithmError):
            manager.create_identity(ISSUER_KEY, ISSUER_MNEMONIC, algorithm="sr25519")

    def test_unknown_address(self, manager: IdentityManager) -> None:
        with pytest.raises(UnknownIdentityError):
            manager.address("ghost")


class TestArmoredTransfer:
    def test_export_then_import_elsewhere(
        self, manager: IdentityManager, tmp_path: Path
    ) -> None:
        manager.create_identity(ISSUER_KEY, ISSUER_MNEMONIC)
        armor = manager.export_identity(ISSUER_KEY, "s3cret!!")

        other_keyring = LocalKeyring(tmp_path / "node1", prefix="empower")
        try:
            other = IdentityManager(other_keyring, prefix="empower")
            assert other.import_identity("issuer2", armor, "s3cret!!") == ISSUER_ADDRESS
            assert other.identities["issuer2"].mnemonic is None
        finally:
            other_keyring.close()

    def test_import_wrong_passphrase(self, manager: IdentityManager) -> None:
        manager.create_identity(ISSUER_KEY, ISSUER_MNEMONIC)
        armor = manager.export_identity(ISSUER_KEY, "s3cret!!")
        with pytest.raises(DecryptionError):
            manager.import_identity("issuer2", armor, "nope")

    def test_copy_identity(
        self, manager: IdentityManager, tmp_path: Path, spare_mnemonics: tuple[str, ...]
    ) -> None:
        validator_keyring = LocalKeyring(tmp_path / "node1", prefix="empower")
        try:
            validator = IdentityManager(validator_keyring, prefix="empower")
            address = validator.create_identity("node1", spare_mnemonics[0])
            assert manager.copy_identity("node1", validator_keyring) == address
            assert manager.address("node1") == address
        finally:
            validator_keyring.close()


class TestProvision:
    def test_every_fixture(self, manager: IdentityManager, local_keyring: LocalKeyring) -> None:
        provisioned = manager.provision()
        assert provisioned == {f.name: f.address for f in FIXTURE_IDENTITIES}
        assert len(local_keyring.list()) == len(FIXTURE_IDENTITIES)

    def test_idempotent(self, manager: IdentityManager, local_keyring: LocalKeyring) -> None:
        manager.provision()
        again = IdentityManager(local_keyring, prefix="empower").provision()
        assert again[ISSUER_KEY] == ISSUER_ADDRESS
        assert len(local_keyring.list()) == len(FIXTURE_IDENTITIES)

    def test_mismatch_stops_before_storing(
        self, manager: IdentityManager, local_keyring: LocalKeyring
    ) -> None:
        wrong = IdentityFixture("liar", ISSUER_MNEMONIC, "empower1wrongaddress")
        with pytest.raises(IdentityMismatchError) as exc_info:
            manager.provision([wrong])
        assert exc_info.value.actual == ISSUER_ADDRESS
        assert exc_info.value.detail()["expected"] == "empower1wrongaddress"
        assert not local_keyring.has("liar")

    def test_existing_key_with_other_address(
        self,
        manager: IdentityManager,
        local_keyring: LocalKeyring,
        spare_mnemonics: tuple[str, ...],
    ) -> None:
        manager.create_identity(ISSUER_KEY, spare_mnemonics[0])
        with pytest.raises(IdentityMismatchError):
            manager.provision(FIXTURE_IDENTITIES[:1])
