"""Keyrings: where signing identities live.

Two backends share the ``Keyring`` protocol:

- ``LocalKeyring`` derives keys in-process and stores them, armored, in a
  SQLite database under a node home. Nothing outside the harness can sign
  with it, so it backs offline tooling and the identity unit tests.
- ``CliKeyring`` delegates to the chain binary's ``keys`` commands with the
  ``test`` backend, so the binary can sign transactions with the identities
  the harness provisions.
"""

from __future__ import annotations

import base64
import json
import logging
import secrets
import subprocess
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy import delete, insert, select

from empower_e2e.errors import (
    CommandError,
    DecryptionError,
    DuplicateIdentityError,
    InvalidArmorError,
    InvalidMnemonicError,
    UnknownIdentityError,
)
from empower_e2e.infrastructure.armor import ARMOR_BEGIN, ARMOR_END, decrypt_armor, encrypt_armor
from empower_e2e.infrastructure.chaincli import ChainCli, parse_json_output
from empower_e2e.infrastructure.database.engine import init_keyring_db
from empower_e2e.infrastructure.database.schema import keys
from empower_e2e.infrastructure.hd import (
    KeyAlgorithm,
    address_for_private_key,
    check_algorithm,
    compressed_public_key,
    derive_private_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyRecord:
    """Public view of a stored identity."""

    name: str
    address: str
    algorithm: str
    pubkey: bytes
    hd_path: str | None = None


class Keyring(Protocol):
    """Named signing identities for one node."""

    def has(self, name: str) -> bool: ...

    def get(self, name: str) -> KeyRecord: ...

    def list(self) -> list[KeyRecord]: ...

    def add_from_mnemonic(
        self,
        name: str,
        mnemonic: str,
        *,
        passphrase: str,
        hd_path: str,
        algorithm: str,
    ) -> KeyRecord: ...

    def export_armor(self, name: str, passphrase: str) -> str: ...

    def import_armor(self, name: str, armor: str, passphrase: str) -> KeyRecord: ...

    def delete(self, name: str) -> None: ...


# --- Local (SQLite) ---


class LocalKeyring:
    """SQLite keyring scoped to one node home.

    Rows hold each private key armored under *storage_passphrase*; the
    ``test`` backend convention is an empty storage passphrase.
    """

    def __init__(self, home: Path, *, prefix: str, storage_passphrase: str = "") -> None:
        self.home = home
        self._prefix = prefix
        self._storage_passphrase = storage_passphrase
        self._engine = init_keyring_db(home)

    def close(self) -> None:
        self._engine.dispose()

    def has(self, name: str) -> bool:
        with self._engine.connect() as conn:
            row = conn.execute(select(keys.c.name).where(keys.c.name == name)).first()
        return row is not None

    def get(self, name: str) -> KeyRecord:
        with self._engine.connect() as conn:
            row = conn.execute(select(keys).where(keys.c.name == name)).first()
        if row is None:
            raise UnknownIdentityError(name)
        return _record_from_row(row._mapping)

    def list(self) -> list[KeyRecord]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(keys).order_by(keys.c.name)).all()
        return [_record_from_row(row._mapping) for row in rows]

    def add_from_mnemonic(
        self,
        name: str,
        mnemonic: str,
        *,
        passphrase: str,
        hd_path: str,
        algorithm: str,
    ) -> KeyRecord:
        algo = check_algorithm(algorithm)
        if self.has(name):
            raise DuplicateIdentityError(name)
        private_key = derive_private_key(mnemonic, passphrase, hd_path)
        return self._store(name, private_key, algo, hd_path=hd_path)

    def export_armor(self, name: str, passphrase: str) -> str:
        private_key, algorithm = self._private_key(name)
        return encrypt_armor(private_key, passphrase, algorithm=algorithm)

    def import_armor(self, name: str, armor: str, passphrase: str) -> KeyRecord:
        if self.has(name):
            raise DuplicateIdentityError(name)
        private_key, algorithm = decrypt_armor(armor, passphrase)
        return self._store(name, private_key, check_algorithm(algorithm), hd_path=None)

    def delete(self, name: str) -> None:
        with self._engine.begin() as conn:
            result = conn.execute(delete(keys).where(keys.c.name == name))
        if result.rowcount == 0:
            raise UnknownIdentityError(name)

    def _private_key(self, name: str) -> tuple[bytes, str]:
        with self._engine.connect() as conn:
            row = conn.execute(select(keys.c.armor).where(keys.c.name == name)).first()
        if row is None:
            raise UnknownIdentityError(name)
        return decrypt_armor(row.armor, self._storage_passphrase)

    def _store(
        self,
        name: str,
        private_key: bytes,
        algorithm: KeyAlgorithm,
        *,
        hd_path: str | None,
    ) -> KeyRecord:
        record = KeyRecord(
            name=name,
            address=address_for_private_key(private_key, self._prefix),
            algorithm=str(algorithm),
            pubkey=compressed_public_key(private_key),
            hd_path=hd_path,
        )
        with self._engine.begin() as conn:
            conn.execute(
                insert(keys).values(
                    name=record.name,
                    address=record.address,
                    algorithm=record.algorithm,
                    pubkey=record.pubkey,
                    hd_path=record.hd_path,
                    armor=encrypt_armor(
                        private_key, self._storage_passphrase, algorithm=record.algorithm
                    ),
                    created=datetime.now(UTC).isoformat(),
                )
            )
        logger.debug("Stored key %s (%s)", name, record.address)
        return record


def _record_from_row(row: Any) -> KeyRecord:
    return KeyRecord(
        name=row["name"],
        address=row["address"],
        algorithm=row["algorithm"],
        pubkey=bytes(row["pubkey"]),
        hd_path=row["hd_path"],
    )


# --- Chain binary ---

# The binary refuses export passphrases shorter than this.
MIN_CLI_PASSPHRASE_LENGTH = 8


def transfer_passphrase() -> str:
    """One-off passphrase for moving a key between keyrings."""
    return secrets.token_hex(MIN_CLI_PASSPHRASE_LENGTH)


class CliKeyring:
    """Keyring backed by ``<binary> keys ...`` in one node home."""

    def __init__(self, cli: ChainCli) -> None:
        self._cli = cli

    def _keys(
        self,
        *args: str,
        input: str | None = None,  # noqa: A002
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        return self._cli.run(
            "keys", *args, "--keyring-backend", self._cli.keyring_backend, input=input, check=check
        )

    def has(self, name: str) -> bool:
        return self._keys("show", name, "--output", "json", check=False).returncode == 0

    def get(self, name: str) -> KeyRecord:
        result = self._keys("show", name, "--output", "json", check=False)
        if result.returncode != 0:
            raise UnknownIdentityError(name)
        return _record_from_cli(parse_json_output(result.stdout))

    def list(self) -> list[KeyRecord]:
        result = self._keys("list", "--output", "json")
        return [_record_from_cli(entry) for entry in parse_json_output(result.stdout) or []]

    def add_from_mnemonic(
        self,
        name: str,
        mnemonic: str,
        *,
        passphrase: str,
        hd_path: str,
        algorithm: str,
    ) -> KeyRecord:
        algo = check_algorithm(algorithm)
        if self.has(name):
            raise DuplicateIdentityError(name)
        # Validates the checksum before the binary sees the phrase.
        derive_private_key(mnemonic, passphrase, hd_path)

        args = ["add", name, "--recover", "--hd-path", hd_path, "--algo", str(algo)]
        stdin = f"{mnemonic}\n"
        if passphrase:
            args.append("--interactive")
            stdin = f"{mnemonic}\n{passphrase}\n{passphrase}\n"
        try:
            result = self._keys(*args, "--output", "json", input=stdin)
        except CommandError as exc:
            if "mnemonic" in exc.stderr.lower():
                raise InvalidMnemonicError(exc.stderr.strip()) from exc
            raise
        record = _record_from_cli(parse_json_output(result.stdout))
        return KeyRecord(record.name, record.address, record.algorithm, record.pubkey, hd_path)

    def export_armor(self, name: str, passphrase: str) -> str:
        if not self.has(name):
            raise UnknownIdentityError(name)
        result = self._keys("export", name, input=f"{passphrase}\n")
        # The binary prints the armor on stderr.
        for stream in (result.stdout, result.stderr):
            if ARMOR_BEGIN in stream:
                start = stream.index(ARMOR_BEGIN)
                end = stream.index(ARMOR_END, start) + len(ARMOR_END)
                return stream[start:end] + "\n"
        msg = f"No armored key in export output for {name!r}"
        raise InvalidArmorError(msg)

    def import_armor(self, name: str, armor: str, passphrase: str) -> KeyRecord:
        if self.has(name):
            raise DuplicateIdentityError(name)
        with tempfile.NamedTemporaryFile("w", suffix=".armor", delete=False) as handle:
            handle.write(armor)
            armor_path = Path(handle.name)
        try:
            self._keys("import", name, str(armor_path), input=f"{passphrase}\n")
        except CommandError as exc:
            stderr = exc.stderr.lower()
            if "decrypt" in stderr or "password" in stderr:
                raise DecryptionError(exc.stderr.strip()) from exc
            if "armor" in stderr:
                raise InvalidArmorError(exc.stderr.strip()) from exc
            raise
        finally:
            armor_path.unlink(missing_ok=True)
        return self.get(name)

    def delete(self, name: str) -> None:
        if not self.has(name):
            raise UnknownIdentityError(name)
        self._keys("delete", name, "--yes")


def _record_from_cli(entry: dict[str, Any]) -> KeyRecord:
    """Build a record from one ``keys show/list --output json`` entry.

    ``pubkey`` is itself a JSON document (``{"@type": ..., "key": <b64>}``)
    embedded as a string.
    """
    pubkey = entry.get("pubkey") or {}
    if isinstance(pubkey, str):
        pubkey = json.loads(pubkey)
    type_url = pubkey.get("@type", "")
    algorithm = KeyAlgorithm.SECP256K1 if "secp256k1" in type_url else type_url
    return KeyRecord(
        name=entry["name"],
        address=entry["address"],
        algorithm=str(algorithm),
        pubkey=base64.b64decode(pubkey.get("key", "")),
    )
