"""Command interface to the chain binary.

Every call is a subprocess: ``<binary> <args> --home <node home>``.
Transactions are broadcast in sync mode, so ``tx`` returns as soon as the
node has checked the transaction for mempool admission; confirmation is a
separate ``query tx`` lookup.
"""

from __future__ import annotations

import json
import logging
import subprocess
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ValidationError

from empower_e2e.config.models import RetryPolicy
from empower_e2e.domain.tx import TxResponse, tx_hash_hex
from empower_e2e.errors import CommandError, ConfirmationTimeoutError, PollTimeoutError
from empower_e2e.infrastructure.polling import poll

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess[str]]

_NOT_FOUND_MARKERS = ("not found", "NotFound")

# Shell convention for "command not found".
_NOT_EXECUTABLE = 127


class TxFlags(BaseModel):
    """Flags appended to every transaction command."""

    model_config = {"frozen": True}

    fees: str
    broadcast_mode: Literal["sync"] = "sync"
    output: Literal["json"] = "json"
    skip_confirmation: bool = True
    gas: str | None = None

    def as_args(self) -> list[str]:
        args = [
            f"--broadcast-mode={self.broadcast_mode}",
            f"--output={self.output}",
            f"--fees={self.fees}",
        ]
        if self.skip_confirmation:
            args.insert(0, "--yes")
        if self.gas is not None:
            args.append(f"--gas={self.gas}")
        return args


class ChainCli:
    """One node's view of the chain binary."""

    def __init__(
        self,
        binary: str,
        *,
        home: Path,
        node: str | None = None,
        chain_id: str | None = None,
        keyring_backend: str = "test",
        runner: Runner = subprocess.run,
        timeout: float = 60.0,
    ) -> None:
        self.binary = binary
        self.home = home
        self.node = node
        self.chain_id = chain_id
        self.keyring_backend = keyring_backend
        self._runner = runner
        self._timeout = timeout

    def run(
        self,
        *args: str,
        input: str | None = None,  # noqa: A002
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run ``<binary> *args --home <home>``.

        Raises:
            CommandError: Non-zero exit status (only when *check* is true).
        """
        argv = [self.binary, *args, "--home", str(self.home)]
        logger.debug("Running %s", " ".join(argv))
        try:
            result = self._runner(
                argv,
                input=input,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except OSError as exc:
            raise CommandError(argv, _NOT_EXECUTABLE, str(exc)) from exc
        if check and result.returncode != 0:
            raise CommandError(argv, result.returncode, result.stderr or result.stdout or "")
        return result

    def _network_args(self) -> list[str]:
        args: list[str] = []
        if self.node:
            args += ["--node", self.node]
        if self.chain_id:
            args += ["--chain-id", self.chain_id]
        return args

    def tx(self, *args: str, from_: str, flags: TxFlags) -> bytes:
        """Broadcast a transaction and return the raw JSON acknowledgment."""
        result = self.run(
            "tx",
            *args,
            "--from",
            from_,
            "--keyring-backend",
            self.keyring_backend,
            *self._network_args(),
            *flags.as_args(),
        )
        return result.stdout.encode("utf-8")

    def query(self, *args: str) -> Any:
        """Run a ``query`` subcommand and parse its JSON output."""
        result = self.run("query", *args, *self._network_args(), "--output", "json")
        return parse_json_output(result.stdout)

    def query_tx(self, tx_hash: bytes) -> TxResponse | None:
        """Look a transaction up by hash; ``None`` while it is not yet indexed."""
        args = ["query", "tx", tx_hash_hex(tx_hash), *self._network_args(), "--output", "json"]
        result = self.run(*args, check=False)
        if result.returncode != 0:
            if any(marker in result.stderr for marker in _NOT_FOUND_MARKERS):
                return None
            raise CommandError(
                [self.binary, *args], result.returncode, result.stderr or result.stdout or ""
            )
        try:
            return TxResponse.model_validate_json(result.stdout)
        except ValidationError:
            logger.debug("Unparseable query tx output: %s", result.stdout[:200])
            return None


class TxLookup(Protocol):
    """Finds a transaction in a block, waiting as long as its policy allows."""

    def wait_for_tx(self, tx_hash: bytes) -> TxResponse: ...


class CliTxLookup:
    """``TxLookup`` backed by ``query tx`` with bounded retries."""

    def __init__(
        self,
        cli: ChainCli,
        policy: RetryPolicy,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._cli = cli
        self._policy = policy
        self._sleep = sleep

    def wait_for_tx(self, tx_hash: bytes) -> TxResponse:
        """Poll until *tx_hash* is included in a block.

        Raises:
            ConfirmationTimeoutError: Retry policy exhausted.
        """
        txhash = tx_hash_hex(tx_hash)
        try:
            return poll(
                lambda: self._cli.query_tx(tx_hash),
                policy=self._policy,
                what=f"tx {txhash}",
                sleep=self._sleep,
            )
        except PollTimeoutError as exc:
            raise ConfirmationTimeoutError(txhash, exc.attempts, exc.elapsed) from exc


def parse_json_output(text: str) -> Any:
    """Parse the first JSON document in a command's output.

    Some binaries print a warning line before the JSON payload; those lines
    are skipped.
    """
    for i, ch in enumerate(text):
        if ch in "[{":
            try:
                value, _ = json.JSONDecoder().raw_decode(text[i:])
            except json.JSONDecodeError:
                continue
            return value
    msg = f"No JSON document in command output: {text[:200]!r}"
    raise ValueError(msg)
