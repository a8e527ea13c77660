"""Shared pytest fixtures and test doubles for empower-e2e tests."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog
from click.testing import CliRunner

from empower_e2e.config.settings import HarnessSettings
from empower_e2e.domain.fixtures import FULL_FUNDRAISER_PATH
from empower_e2e.domain.genesis import GenesisDocument
from empower_e2e.infrastructure.chaincli import ChainCli
from empower_e2e.infrastructure.keyring import LocalKeyring
from empower_e2e.infrastructure.launcher import ValidatorNode
from empower_e2e.infrastructure.rpc import CometRpc
from empower_e2e.messages.registry import TX_MSG_DATA, get_message_class, type_url

pytest_plugins = ["pytester"]

# BIP-39 reference vectors: valid phrases unrelated to any fixture identity.
SPARE_MNEMONICS = (
    "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon "
    "abandon about",
    "legal winner thank year wave sausage worth useful legal winner thank yellow",
    "letter advice cage absurd amount doctor acoustic avoid letter advice cage above",
)

TX_HASH = "A" * 64


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's EMPOWER_E2E_* environment out of the tests."""
    monkeypatch.delenv("EMPOWER_E2E_CONFIG", raising=False)


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo the root-logger and structlog setup a CLI invocation performs."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("empower_e2e").setLevel(logging.NOTSET)
    structlog.reset_defaults()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> HarnessSettings:
    return HarnessSettings.from_cli(project_root=tmp_path)


def make_app_state() -> dict[str, Any]:
    return {
        "auth": {"params": {"max_memo_characters": "256"}, "accounts": []},
        "bank": {"params": {}, "balances": [], "supply": []},
        "gov": {"params": {"min_deposit": [], "voting_period": "172800s"}},
        "distribution": {"params": {}, "fee_pool": {"community_pool": []}},
        "staking": {"params": {"bond_denom": "stake"}},
    }


@pytest.fixture
def app_state() -> dict[str, Any]:
    """Minimal app state with every module the composer touches."""
    return make_app_state()


@pytest.fixture
def base_genesis(app_state: dict[str, Any]) -> GenesisDocument:
    return GenesisDocument(app_state)


@pytest.fixture
def local_keyring(tmp_path: Path) -> Iterator[LocalKeyring]:
    keyring = LocalKeyring(tmp_path / "node0", prefix="empower")
    try:
        yield keyring
    finally:
        keyring.close()


# ---------------------------------------------------------------------------
# Chain binary double
# ---------------------------------------------------------------------------

Handler = Callable[[list[str], str | None], subprocess.CompletedProcess[str]]


class FakeRunner:
    """Stands in for ``subprocess.run``: records argv, replays canned output.

    Responses are matched on a prefix of the arguments after the binary name;
    the most recently registered match wins.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []
        self._responses: list[tuple[tuple[str, ...], Handler]] = []

    def respond(
        self,
        *prefix: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> None:
        def handler(argv: list[str], _input: str | None) -> subprocess.CompletedProcess[str]:
            return subprocess.CompletedProcess(argv, returncode, stdout, stderr)

        self._responses.append((prefix, handler))

    def on(self, *prefix: str, handler: Handler) -> None:
        self._responses.append((prefix, handler))

    def __call__(
        self, argv: list[str], *, input: str | None = None, **_: Any  # noqa: A002
    ) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(argv))
        self.inputs.append(input)
        args = tuple(argv[1:])
        for prefix, handler in reversed(self._responses):
            if args[: len(prefix)] == prefix:
                return handler(list(argv), input)
        return subprocess.CompletedProcess(argv, 0, "", "")

    def calls_to(self, *prefix: str) -> list[list[str]]:
        return [call for call in self.calls if tuple(call[1 : 1 + len(prefix)]) == prefix]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


# ---------------------------------------------------------------------------
# Transaction payloads
# ---------------------------------------------------------------------------


def tx_data_hex(*responses: Any) -> str:
    """Hex ``TxMsgData`` packing *responses* as the chain does."""
    envelope = get_message_class(TX_MSG_DATA)()
    for response in responses:
        envelope.msg_responses.add(
            type_url=type_url(type(response)), value=response.SerializeToString()
        )
    return envelope.SerializeToString().hex().upper()


@pytest.fixture
def make_data_hex() -> Callable[..., str]:
    return tx_data_hex


@pytest.fixture
def spare_mnemonics() -> tuple[str, ...]:
    return SPARE_MNEMONICS


@pytest.fixture
def tx_hash() -> str:
    return TX_HASH


# ---------------------------------------------------------------------------
# Network doubles
# ---------------------------------------------------------------------------


class FakeLauncher:
    """Launcher whose validators are LocalKeyrings plus a scripted binary.

    Validator ``i > 0`` holds a key named after its moniker, derived from a
    spare mnemonic, so it can be copied into validator 0's keyring.
    """

    def __init__(
        self,
        workdir: Path,
        runner: FakeRunner,
        *,
        validators: int = 2,
        error: Exception | None = None,
    ) -> None:
        self.workdir = workdir
        self.runner = runner
        self.validators = validators
        self.error = error
        self.launched: GenesisDocument | None = None
        self.shutdowns = 0
        self._keyrings: list[LocalKeyring] = []

    def base_genesis(self) -> GenesisDocument:
        return GenesisDocument(make_app_state())

    def launch(self, genesis: GenesisDocument) -> list[ValidatorNode]:
        if self.error is not None:
            raise self.error
        self.launched = genesis
        return [self._node(i) for i in range(self.validators)]

    def _node(self, index: int) -> ValidatorNode:
        moniker = f"node{index}"
        home = self.workdir / moniker
        keyring = LocalKeyring(home, prefix="empower")
        self._keyrings.append(keyring)
        address = f"empower1{moniker}"
        if index > 0:
            address = keyring.add_from_mnemonic(
                moniker,
                SPARE_MNEMONICS[index - 1],
                passphrase="",
                hd_path=FULL_FUNDRAISER_PATH,
                algorithm="secp256k1",
            ).address
        return ValidatorNode(
            index=index,
            moniker=moniker,
            home=home,
            address=address,
            rpc_url=f"http://127.0.0.1:{26600 + 10 * index}",
            cli=ChainCli("empowerd", home=home, runner=self.runner),
            keyring=keyring,
        )

    def shutdown(self) -> None:
        self.shutdowns += 1
        for keyring in self._keyrings:
            keyring.close()


class FakeChain:
    """RPC factory over ``httpx.MockTransport``; height advances per status call."""

    def __init__(self, *, live: bool = True) -> None:
        self.live = live
        self.height = 0
        self.clients: list[CometRpc] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        if not self.live:
            return httpx.Response(503, text="starting")
        self.height += 1
        return httpx.Response(
            200, json={"result": {"sync_info": {"latest_block_height": str(self.height)}}}
        )

    def __call__(self, base_url: str) -> CometRpc:
        client = CometRpc(base_url, transport=httpx.MockTransport(self._handle))
        self.clients.append(client)
        return client


@pytest.fixture
def fake_launcher(tmp_path: Path, fake_runner: FakeRunner) -> Iterator[FakeLauncher]:
    launcher = FakeLauncher(tmp_path / "net", fake_runner)
    yield launcher
    launcher.shutdown()


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI commands from a temp directory so no stray config is discovered."""
    monkeypatch.chdir(tmp_path)
