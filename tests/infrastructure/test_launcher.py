"""Tests for ProcessLauncher against a scripted chain binary."""

import json
import subprocess
from pathlib import Path

import pytest

from empower_e2e.config.models import ChainConfig, NetworkConfig
from empower_e2e.domain.genesis import GenesisDocument
from empower_e2e.infrastructure.keyring import CliKeyring
from empower_e2e.infrastructure.launcher import NodePorts, ProcessLauncher


def _home(argv: list[str]) -> Path:
    return Path(argv[argv.index("--home") + 1])


class FakeProcess:
    def __init__(self, argv: list[str], env: dict[str, str], *, stubborn: bool = False) -> None:
        self.argv = argv
        self.env = env
        self.pid = 4242
        self.returncode: int | None = None
        self.stubborn = stubborn
        self.killed = False

    def poll(self) -> int | None:
        return self.returncode

    def terminate(self) -> None:
        if not self.stubborn:
            self.returncode = 0

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    def wait(self, timeout: float | None = None) -> int:
        if self.returncode is None:
            raise subprocess.TimeoutExpired(self.argv, timeout)
        return self.returncode


class FakePopen:
    def __init__(self, *, stubborn: bool = False) -> None:
        self.processes: list[FakeProcess] = []
        self.stubborn = stubborn

    def __call__(self, argv, *, stdout, stderr, env):
        process = FakeProcess(argv, env, stubborn=self.stubborn)
        self.processes.append(process)
        return process


@pytest.fixture
def scripted_binary(fake_runner, app_state):
    def init(argv, _input):
        config = _home(argv) / "config"
        config.mkdir(parents=True)
        (config / "genesis.json").write_text(
            json.dumps({"chain_id": "", "app_state": app_state})
        )
        return subprocess.CompletedProcess(argv, 0, "", "")

    def keys_add(argv, _input):
        moniker = argv[3]
        info = {"name": moniker, "address": f"empower1{moniker}"}
        # Some binary versions print the new key on stderr.
        return subprocess.CompletedProcess(argv, 0, "", json.dumps(info))

    def node_id(argv, _input):
        return subprocess.CompletedProcess(argv, 0, f"id-{_home(argv).name}\n", "")

    fake_runner.on("init", handler=init)
    fake_runner.on("keys", "add", handler=keys_add)
    fake_runner.on("tendermint", "show-node-id", handler=node_id)
    return fake_runner


def _launcher(tmp_path: Path, runner, popen, **network) -> ProcessLauncher:
    options = {"num_validators": 2, "base_port": 30000, "port_stride": 10}
    options.update(network)
    return ProcessLauncher(
        ChainConfig(), NetworkConfig(**options), tmp_path, runner=runner, popen=popen
    )


class TestNodePorts:
    def test_blocks_do_not_overlap(self) -> None:
        first = NodePorts.for_index(0, base_port=30000, stride=10)
        second = NodePorts.for_index(1, base_port=30000, stride=10)
        assert (first.rpc, first.p2p, first.pprof) == (30000, 30001, 30004)
        assert second.rpc == 30010


class TestPrepare:
    def test_base_genesis_from_node0(self, tmp_path: Path, scripted_binary) -> None:
        launcher = _launcher(tmp_path, scripted_binary, FakePopen())
        genesis = launcher.base_genesis()
        assert "bank" in genesis
        assert [n.moniker for n in launcher.nodes] == ["node0", "node1"]
        assert isinstance(launcher.nodes[0].keyring, CliKeyring)

    def test_init_and_funding(self, tmp_path: Path, scripted_binary) -> None:
        launcher = _launcher(tmp_path, scripted_binary, FakePopen())
        launcher.base_genesis()
        init = scripted_binary.calls_to("init")[0]
        assert init[init.index("--default-denom") + 1] == "stake"
        funded = scripted_binary.calls_to("genesis", "add-genesis-account")
        assert [call[3] for call in funded] == ["empower1node0", "empower1node1"]
        assert all(call[4] == "1000000000stake" for call in funded)
        assert all(_home(call) == tmp_path / "node0" for call in funded)

    def test_legacy_genesis_commands(self, tmp_path: Path, scripted_binary) -> None:
        launcher = ProcessLauncher(
            ChainConfig(genesis_subcommand=""),
            NetworkConfig(num_validators=1),
            tmp_path,
            runner=scripted_binary,
            popen=FakePopen(),
        )
        launcher.base_genesis()
        assert scripted_binary.calls_to("add-genesis-account")

    def test_prepares_once(self, tmp_path: Path, scripted_binary) -> None:
        launcher = _launcher(tmp_path, scripted_binary, FakePopen())
        launcher.base_genesis()
        launcher.base_genesis()
        assert len(scripted_binary.calls_to("init")) == 2


class TestLaunch:
    def test_writes_genesis_and_starts_every_node(
        self, tmp_path: Path, scripted_binary, base_genesis: GenesisDocument
    ) -> None:
        popen = FakePopen()
        launcher = _launcher(tmp_path, scripted_binary, popen)
        launcher.base_genesis()
        base_genesis.write("plasticcredit", {"issuers": []})
        validators = launcher.launch(base_genesis)

        for node in validators:
            written = json.loads((node.home / "config" / "genesis.json").read_text())
            assert written["chain_id"] == "empowerchain-e2e"
            assert written["app_state"]["plasticcredit"] == {"issuers": []}

        gentxs = scripted_binary.calls_to("genesis", "gentx")
        assert [call[3] for call in gentxs] == ["node0", "node1"]
        assert scripted_binary.calls_to("genesis", "collect-gentxs")

        assert len(popen.processes) == 2
        argv = popen.processes[1].argv
        assert "--rpc.laddr=tcp://127.0.0.1:30010" in argv
        assert (
            "--p2p.persistent_peers=id-node0@127.0.0.1:30001,id-node1@127.0.0.1:30011" in argv
        )
        assert popen.processes[0].env["EMPOWERD_P2P_ALLOW_DUPLICATE_IP"] == "true"
        assert validators[0].rpc_url == "http://127.0.0.1:30000"

    def test_shutdown_terminates(
        self, tmp_path: Path, scripted_binary, base_genesis: GenesisDocument
    ) -> None:
        popen = FakePopen()
        launcher = _launcher(tmp_path, scripted_binary, popen)
        launcher.base_genesis()
        launcher.launch(base_genesis)
        launcher.shutdown()
        launcher.shutdown()
        assert all(p.returncode == 0 for p in popen.processes)
        assert not any(p.killed for p in popen.processes)

    def test_shutdown_kills_stubborn_nodes(
        self, tmp_path: Path, scripted_binary, base_genesis: GenesisDocument
    ) -> None:
        popen = FakePopen(stubborn=True)
        launcher = _launcher(tmp_path, scripted_binary, popen, shutdown_grace_seconds=0.01)
        launcher.base_genesis()
        launcher.launch(base_genesis)
        launcher.shutdown()
        assert all(p.killed for p in popen.processes)

    def test_shutdown_before_launch(self, tmp_path: Path, scripted_binary) -> None:
        _launcher(tmp_path, scripted_binary, FakePopen()).shutdown()
