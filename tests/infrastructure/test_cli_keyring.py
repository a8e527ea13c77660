"""Tests for CliKeyring against a scripted chain binary."""

import base64
import json
import subprocess
from pathlib import Path

import pytest

from empower_e2e.domain.fixtures import FIXTURE_IDENTITIES, FULL_FUNDRAISER_PATH, ISSUER_ADDRESS
from empower_e2e.errors import (
    DecryptionError,
    DuplicateIdentityError,
    InvalidArmorError,
    InvalidMnemonicError,
    UnknownIdentityError,
)
from empower_e2e.infrastructure.armor import ARMOR_BEGIN, ARMOR_END
from empower_e2e.infrastructure.chaincli import ChainCli
from empower_e2e.infrastructure.keyring import (
    MIN_CLI_PASSPHRASE_LENGTH,
    CliKeyring,
    transfer_passphrase,
)

ISSUER_MNEMONIC = FIXTURE_IDENTITIES[0].mnemonic
PUBKEY = b"\x02" + b"\x01" * 32


def _key_json(name: str, address: str = ISSUER_ADDRESS) -> str:
    pubkey = json.dumps(
        {"@type": "/cosmos.crypto.secp256k1.PubKey", "key": base64.b64encode(PUBKEY).decode()}
    )
    return json.dumps({"name": name, "type": "local", "address": address, "pubkey": pubkey})


@pytest.fixture
def keyring(fake_runner, tmp_path: Path) -> CliKeyring:
    return CliKeyring(ChainCli("empowerd", home=tmp_path, runner=fake_runner))


class TestLookup:
    def test_get_parses_embedded_pubkey(self, keyring: CliKeyring, fake_runner) -> None:
        fake_runner.respond("keys", "show", "issuer", stdout=_key_json("issuer"))
        record = keyring.get("issuer")
        assert record.address == ISSUER_ADDRESS
        assert record.algorithm == "secp256k1"
        assert record.pubkey == PUBKEY
        assert "--keyring-backend" in fake_runner.calls[0]

    def test_unknown(self, keyring: CliKeyring, fake_runner) -> None:
        fake_runner.respond("keys", "show", stderr="issuer is not a valid name", returncode=1)
        assert not keyring.has("issuer")
        with pytest.raises(UnknownIdentityError):
            keyring.get("issuer")

    def test_list(self, keyring: CliKeyring, fake_runner) -> None:
        entries = [json.loads(_key_json("a")), json.loads(_key_json("b"))]
        fake_runner.respond("keys", "list", stdout=json.dumps(entries))
        assert [r.name for r in keyring.list()] == ["a", "b"]


class TestAdd:
    def test_recovers_from_stdin(self, keyring: CliKeyring, fake_runner) -> None:
        fake_runner.respond("keys", "show", returncode=1)
        fake_runner.respond("keys", "add", stdout=_key_json("issuer"))
        record = keyring.add_from_mnemonic(
            "issuer",
            ISSUER_MNEMONIC,
            passphrase="",
            hd_path=FULL_FUNDRAISER_PATH,
            algorithm="secp256k1",
        )
        assert record.hd_path == FULL_FUNDRAISER_PATH
        add = fake_runner.calls_to("keys", "add")[0]
        assert "--recover" in add
        assert add[add.index("--hd-path") + 1] == FULL_FUNDRAISER_PATH
        assert "--interactive" not in add
        assert fake_runner.inputs[-1] == f"{ISSUER_MNEMONIC}\n"

    def test_bip39_passphrase_is_interactive(self, keyring: CliKeyring, fake_runner) -> None:
        fake_runner.respond("keys", "show", returncode=1)
        fake_runner.respond("keys", "add", stdout=_key_json("issuer"))
        keyring.add_from_mnemonic(
            "issuer",
            ISSUER_MNEMONIC,
            passphrase="bip39",
            hd_path=FULL_FUNDRAISER_PATH,
            algorithm="secp256k1",
        )
        assert "--interactive" in fake_runner.calls_to("keys", "add")[0]
        assert fake_runner.inputs[-1] == f"{ISSUER_MNEMONIC}\nbip39\nbip39\n"

    def test_duplicate(self, keyring: CliKeyring, fake_runner) -> None:
        fake_runner.respond("keys", "show", stdout=_key_json("issuer"))
        with pytest.raises(DuplicateIdentityError):
            keyring.add_from_mnemonic(
                "issuer",
                ISSUER_MNEMONIC,
                passphrase="",
                hd_path=FULL_FUNDRAISER_PATH,
                algorithm="secp256k1",
            )
        assert fake_runner.calls_to("keys", "add") == []

    def test_invalid_mnemonic_never_reaches_binary(
        self, keyring: CliKeyring, fake_runner
    ) -> None:
        fake_runner.respond("keys", "show", returncode=1)
        with pytest.raises(InvalidMnemonicError):
            keyring.add_from_mnemonic(
                "bad",
                "abandon " * 11 + "abandon",
                passphrase="",
                hd_path=FULL_FUNDRAISER_PATH,
                algorithm="secp256k1",
            )
        assert fake_runner.calls_to("keys", "add") == []


class TestArmor:
    def test_export_reads_armor_from_stderr(self, keyring: CliKeyring, fake_runner) -> None:
        armor = f"{ARMOR_BEGIN}\nkdf: bcrypt\n\nAAAA\n{ARMOR_END}"
        fake_runner.respond("keys", "show", stdout=_key_json("issuer"))
        fake_runner.respond("keys", "export", stderr=f"{armor}\n")
        assert keyring.export_armor("issuer", "longenough") == f"{armor}\n"
        assert fake_runner.inputs[-1] == "longenough\n"

    def test_export_without_armor(self, keyring: CliKeyring, fake_runner) -> None:
        fake_runner.respond("keys", "show", stdout=_key_json("issuer"))
        fake_runner.respond("keys", "export", stderr="")
        with pytest.raises(InvalidArmorError):
            keyring.export_armor("issuer", "longenough")

    def test_import_passes_file(self, keyring: CliKeyring, fake_runner) -> None:
        seen: dict[str, str] = {}

        def on_import(argv, _input):
            seen["armor"] = Path(argv[4]).read_text()
            fake_runner.respond("keys", "show", stdout=_key_json("copied"))
            return subprocess.CompletedProcess(argv, 0, "", "")

        fake_runner.respond("keys", "show", returncode=1)
        fake_runner.on("keys", "import", handler=on_import)
        record = keyring.import_armor("copied", "ARMOR", "longenough")
        assert seen["armor"] == "ARMOR"
        assert record.name == "copied"
        assert not Path(fake_runner.calls_to("keys", "import")[0][4]).exists()

    @pytest.mark.parametrize(
        ("stderr", "error"),
        [
            ("Error: failed to decrypt private key: invalid password", DecryptionError),
            ("Error: unrecognized armor type", InvalidArmorError),
        ],
    )
    def test_import_errors(self, keyring: CliKeyring, fake_runner, stderr, error) -> None:
        fake_runner.respond("keys", "show", returncode=1)
        fake_runner.respond("keys", "import", stderr=stderr, returncode=1)
        with pytest.raises(error):
            keyring.import_armor("copied", "ARMOR", "longenough")


class TestTransferPassphrase:
    def test_long_enough_for_the_binary(self) -> None:
        assert len(transfer_passphrase()) >= MIN_CLI_PASSPHRASE_LENGTH

    def test_random(self) -> None:
        assert transfer_passphrase() != transfer_passphrase()
