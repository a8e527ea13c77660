"""Exception taxonomy for the harness.

Setup errors (``SetupFatalError``, genesis and identity errors raised while the
suite is being built) abort the whole suite. Per-transaction errors
(``AdmissionRejectedError``, ``ConfirmationTimeoutError``,
``ExecutionFailedError``, ``DecodeError``) are returned to the calling test,
which decides whether the failure is the expected outcome.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class HarnessError(Exception):
    """Base class for every error raised by empower_e2e."""

    def detail(self) -> dict[str, Any]:
        """Structured fields for ``ServiceError.detail``."""
        return {}


# --- Setup ---


class SetupFatalError(HarnessError):
    """The network failed to start or never became live."""


class CommandError(HarnessError):
    """The chain binary exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        self.argv = args
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{' '.join(args[:3])} ... exited with {returncode}: {stderr.strip()}")

    def detail(self) -> dict[str, Any]:
        return {"argv": self.argv, "returncode": self.returncode, "stderr": self.stderr}


# --- Genesis ---


class GenesisError(HarnessError):
    """Base class for genesis composition failures."""


class MissingModuleError(GenesisError):
    """A module required by the fixtures has no entry in the genesis document."""

    def __init__(self, modules: list[str]) -> None:
        self.modules = modules
        super().__init__(f"Genesis is missing required module(s): {', '.join(modules)}")

    def detail(self) -> dict[str, Any]:
        return {"modules": self.modules}


class GenesisFrozenError(GenesisError):
    """The genesis document was modified after being handed to the network."""


class GenesisIntegrityError(GenesisError):
    """The composed ledger violates a uniqueness or reference invariant."""

    def __init__(self, issues: list[str]) -> None:
        self.issues = issues
        super().__init__(f"{len(issues)} genesis integrity issue(s): " + "; ".join(issues))

    def detail(self) -> dict[str, Any]:
        return {"issues": self.issues}


# --- Identities ---


class IdentityError(HarnessError):
    """Base class for keyring and identity failures."""


class DuplicateIdentityError(IdentityError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Identity {name!r} already exists in the keyring")


class UnknownIdentityError(IdentityError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Identity {name!r} not found in the keyring")


class InvalidMnemonicError(IdentityError):
    """The seed phrase failed BIP-39 word list or checksum validation."""


class UnsupportedAlgorithmError(IdentityError):
    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"Unsupported signing algorithm: {algorithm!r}")


class InvalidArmorError(IdentityError):
    """Armored key material could not be parsed."""


class DecryptionError(IdentityError):
    """Armored key material could not be decrypted with the given passphrase."""


class IdentityMismatchError(IdentityError):
    """A fixture mnemonic derived an address other than the expected one."""

    def __init__(self, name: str, expected: str, actual: str) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"Identity {name!r} derived {actual}, expected {expected}")

    def detail(self) -> dict[str, Any]:
        return {"name": self.name, "expected": self.expected, "actual": self.actual}


# --- Transactions ---


class DecodeLayer(StrEnum):
    """Nesting level at which response decoding failed."""

    ACKNOWLEDGMENT = "acknowledgment"
    HEX = "hex"
    ENVELOPE = "envelope"
    TYPED_PAYLOAD = "typed-payload"


class TxError(HarnessError):
    """Base class for per-transaction failures."""


class AdmissionRejectedError(TxError):
    """The node refused the transaction at local (mempool) admission."""

    def __init__(self, code: int, raw_log: str, *, codespace: str = "", txhash: str = "") -> None:
        self.code = code
        self.raw_log = raw_log
        self.codespace = codespace
        self.txhash = txhash
        super().__init__(f"Transaction rejected at admission with code {code}: {raw_log}")

    def detail(self) -> dict[str, Any]:
        return {"code": self.code, "codespace": self.codespace, "raw_log": self.raw_log}


class NotFoundError(TxError):
    """A transaction could not be found by hash."""


class ConfirmationTimeoutError(NotFoundError):
    """Bounded polling for block inclusion was exhausted."""

    def __init__(self, txhash: str, attempts: int, elapsed: float) -> None:
        self.txhash = txhash
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Transaction {txhash} not confirmed after {attempts} attempt(s) in {elapsed:.1f}s"
        )

    def detail(self) -> dict[str, Any]:
        return {"txhash": self.txhash, "attempts": self.attempts, "elapsed": self.elapsed}


class ExecutionFailedError(TxError):
    """The transaction was included in a block but its execution failed."""

    def __init__(self, txhash: str, code: int, raw_log: str, *, codespace: str = "") -> None:
        self.txhash = txhash
        self.code = code
        self.raw_log = raw_log
        self.codespace = codespace
        super().__init__(f"Transaction {txhash} failed with code {code}: {raw_log}")

    def detail(self) -> dict[str, Any]:
        return {
            "txhash": self.txhash,
            "code": self.code,
            "codespace": self.codespace,
            "raw_log": self.raw_log,
        }


class DecodeError(TxError):
    """A confirmed response could not be decoded; ``layer`` says where."""

    def __init__(self, layer: DecodeLayer, message: str) -> None:
        self.layer = DecodeLayer(layer)
        super().__init__(f"[{self.layer}] {message}")

    def detail(self) -> dict[str, Any]:
        return {"layer": str(self.layer)}


class PollTimeoutError(HarnessError):
    """A bounded poll ran out of attempts or time without a result."""

    def __init__(self, what: str, attempts: int, elapsed: float) -> None:
        self.what = what
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Gave up waiting for {what} after {attempts} attempt(s) in {elapsed:.1f}s"
        )
