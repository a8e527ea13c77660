"""Tests for the network command group."""

import json
from contextlib import contextmanager
from pathlib import Path
from types import SimpleNamespace

import pytest
from click.testing import CliRunner

from empower_e2e.cli import cli
from empower_e2e.testing import context as context_module


class FakeContext:
    opened: list[object] = []

    def __init__(self) -> None:
        self.validators = [
            SimpleNamespace(moniker="node0", rpc_url="http://127.0.0.1:26657", home=Path("/n0")),
            SimpleNamespace(moniker="node1", rpc_url="http://127.0.0.1:26667", home=Path("/n1")),
        ]

    @classmethod
    @contextmanager
    def open(cls, settings):
        cls.opened.append(settings)
        yield cls()

    def wait_for_next_block(self) -> int:
        return 7


@pytest.fixture
def fake_context(monkeypatch: pytest.MonkeyPatch) -> type[FakeContext]:
    FakeContext.opened = []
    monkeypatch.setattr(context_module, "E2EContext", FakeContext)
    return FakeContext


@pytest.mark.usefixtures("_isolated_root")
class TestUp:
    def test_once(self, cli_runner: CliRunner, fake_context) -> None:
        result = cli_runner.invoke(cli, ["--json", "network", "up", "--once"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["op"] == "network_up"
        assert data["data"]["chain_id"] == "empowerchain-e2e"
        assert data["data"]["height"] == 7
        assert [v["moniker"] for v in data["data"]["validators"]] == ["node0", "node1"]
        assert len(fake_context.opened) == 1

    def test_rich(self, cli_runner: CliRunner, fake_context) -> None:
        result = cli_runner.invoke(cli, ["network", "up", "--once"])
        assert result.exit_code == 0, result.output
        assert "live at height 7" in result.output
        assert "http://127.0.0.1:26667" in result.output

    def test_runs_until_interrupted(
        self, cli_runner: CliRunner, fake_context, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def interrupt(_seconds: float) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("empower_e2e.commands.network.time.sleep", interrupt)
        result = cli_runner.invoke(cli, ["network", "up"])
        assert result.exit_code == 0, result.output
        assert "Stopping network..." in result.output

    def test_missing_binary(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(
            cli,
            ["--json", "network", "up", "--once"],
            env={
                "EMPOWER_E2E_CHAIN__BINARY": str(tmp_path / "no-such-empowerd"),
                "EMPOWER_E2E_NETWORK__WORKDIR": str(tmp_path / "net"),
            },
        )
        assert result.exit_code == 1
        error = json.loads(result.output)["error"]
        assert error["code"] == "CommandError"
        assert error["detail"]["returncode"] == 127
