"""Validator launchers.

A launcher owns the validator processes: it hands out the chain's default
genesis, starts every node on a composed genesis and tears them down again.
``ProcessLauncher`` drives the real chain binary; tests substitute fakes
that satisfy the same protocol.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Protocol

from empower_e2e.config.models import ChainConfig, NetworkConfig
from empower_e2e.domain.genesis import GenesisDocument
from empower_e2e.infrastructure.chaincli import ChainCli, Runner, parse_json_output
from empower_e2e.infrastructure.keyring import CliKeyring, Keyring

logger = logging.getLogger(__name__)

# Port offsets within one node's block of ``port_stride`` ports.
RPC_OFFSET = 0
P2P_OFFSET = 1
GRPC_OFFSET = 2
API_OFFSET = 3
PPROF_OFFSET = 4


@dataclass(frozen=True)
class NodePorts:
    rpc: int
    p2p: int
    grpc: int
    api: int
    pprof: int

    @classmethod
    def for_index(cls, index: int, *, base_port: int, stride: int) -> NodePorts:
        start = base_port + index * stride
        return cls(
            rpc=start + RPC_OFFSET,
            p2p=start + P2P_OFFSET,
            grpc=start + GRPC_OFFSET,
            api=start + API_OFFSET,
            pprof=start + PPROF_OFFSET,
        )


@dataclass
class ValidatorNode:
    """One running validator as seen by the harness."""

    index: int
    moniker: str
    home: Path
    address: str
    rpc_url: str
    cli: ChainCli
    keyring: Keyring
    ports: NodePorts | None = None
    process: subprocess.Popen[bytes] | None = field(default=None, repr=False)


class Launcher(Protocol):
    def base_genesis(self) -> GenesisDocument:
        """The chain's default app state, with validator accounts already funded."""
        ...

    def launch(self, genesis: GenesisDocument) -> list[ValidatorNode]:
        """Start every validator on *genesis*. Returns once processes are spawned."""
        ...

    def shutdown(self) -> None:
        """Stop whatever was started. Safe to call more than once."""
        ...


Popen = Callable[..., subprocess.Popen[bytes]]


class ProcessLauncher:
    """Runs ``num_validators`` local nodes of the chain binary.

    Layout: ``{workdir}/node{i}`` per validator home. Node 0 is the
    coordinator: genesis accounts, gentxs and the final genesis are built
    there and copied to the others.
    """

    def __init__(
        self,
        chain: ChainConfig,
        network: NetworkConfig,
        workdir: Path,
        *,
        runner: Runner = subprocess.run,
        popen: Popen = subprocess.Popen,
    ) -> None:
        self._chain = chain
        self._network = network
        self._workdir = workdir
        self._runner = runner
        self._popen = popen
        self._nodes: list[ValidatorNode] = []
        self._logs: list[IO[bytes]] = []
        self._prepared = False

    @property
    def nodes(self) -> list[ValidatorNode]:
        return list(self._nodes)

    # --- Launcher protocol ---

    def base_genesis(self) -> GenesisDocument:
        self._prepare()
        return GenesisDocument.from_file(self._genesis_path(self._nodes[0].home))

    def launch(self, genesis: GenesisDocument) -> list[ValidatorNode]:
        self._prepare()
        coordinator = self._nodes[0]
        genesis_path = self._genesis_path(coordinator.home)

        full = json.loads(genesis_path.read_text(encoding="utf-8"))
        full["app_state"] = genesis.to_dict()
        full["chain_id"] = self._chain.chain_id
        genesis_path.write_text(json.dumps(full, indent=2), encoding="utf-8")

        self._collect_gentxs(coordinator)
        for node in self._nodes[1:]:
            shutil.copyfile(genesis_path, self._genesis_path(node.home))

        peers = ",".join(
            f"{self._node_id(node)}@{self._network.host}:{node.ports.p2p}"
            for node in self._nodes
            if node.ports is not None
        )
        for node in self._nodes:
            self._start(node, peers)
        return self.nodes

    def shutdown(self) -> None:
        for node in self._nodes:
            process = node.process
            if process is None or process.poll() is not None:
                continue
            logger.debug("Stopping %s (pid %s)", node.moniker, process.pid)
            process.terminate()
            try:
                process.wait(timeout=self._network.shutdown_grace_seconds)
            except subprocess.TimeoutExpired:
                logger.warning("%s ignored SIGTERM; killing", node.moniker)
                process.kill()
                process.wait()
        for handle in self._logs:
            handle.close()
        self._logs.clear()

    # --- setup ---

    def _prepare(self) -> None:
        if self._prepared:
            return
        self._workdir.mkdir(parents=True, exist_ok=True)
        for index in range(self._network.num_validators):
            self._nodes.append(self._init_node(index))

        coordinator = self._nodes[0]
        tokens = f"{self._network.validator_tokens}{self._chain.bond_denom}"
        for node in self._nodes:
            coordinator.cli.run(*self._genesis_cmd("add-genesis-account"), node.address, tokens)
        for node in self._nodes[1:]:
            shutil.copyfile(
                self._genesis_path(coordinator.home), self._genesis_path(node.home)
            )
        self._prepared = True

    def _init_node(self, index: int) -> ValidatorNode:
        moniker = f"node{index}"
        home = self._workdir / moniker
        ports = NodePorts.for_index(
            index, base_port=self._network.base_port, stride=self._network.port_stride
        )
        cli = ChainCli(
            self._chain.binary,
            home=home,
            node=f"tcp://{self._network.host}:{ports.rpc}",
            chain_id=self._chain.chain_id,
            keyring_backend=self._chain.keyring_backend,
            runner=self._runner,
        )
        cli.run(
            "init",
            moniker,
            "--chain-id",
            self._chain.chain_id,
            "--default-denom",
            self._chain.bond_denom,
        )
        result = cli.run(
            "keys",
            "add",
            moniker,
            "--keyring-backend",
            self._chain.keyring_backend,
            "--output",
            "json",
        )
        key_info: dict[str, Any] = parse_json_output(result.stdout or result.stderr)
        logger.debug("Initialized %s at %s (%s)", moniker, home, key_info["address"])
        return ValidatorNode(
            index=index,
            moniker=moniker,
            home=home,
            address=key_info["address"],
            rpc_url=f"http://{self._network.host}:{ports.rpc}",
            cli=cli,
            keyring=CliKeyring(cli),
            ports=ports,
        )

    def _collect_gentxs(self, coordinator: ValidatorNode) -> None:
        gentx_dir = coordinator.home / "config" / "gentx"
        gentx_dir.mkdir(parents=True, exist_ok=True)
        stake = f"{self._network.validator_stake}{self._chain.bond_denom}"
        genesis_path = self._genesis_path(coordinator.home)
        for node in self._nodes:
            if node is not coordinator:
                shutil.copyfile(genesis_path, self._genesis_path(node.home))
            output = gentx_dir / f"gentx-{node.moniker}.json"
            node.cli.run(
                *self._genesis_cmd("gentx"),
                node.moniker,
                stake,
                "--chain-id",
                self._chain.chain_id,
                "--keyring-backend",
                self._chain.keyring_backend,
                "--moniker",
                node.moniker,
                "--output-document",
                str(output),
            )
        coordinator.cli.run(*self._genesis_cmd("collect-gentxs"))

    def _node_id(self, node: ValidatorNode) -> str:
        return node.cli.run("tendermint", "show-node-id").stdout.strip()

    def _start(self, node: ValidatorNode, peers: str) -> None:
        assert node.ports is not None
        host = self._network.host
        argv = [
            self._chain.binary,
            "start",
            "--home",
            str(node.home),
            f"--rpc.laddr=tcp://{host}:{node.ports.rpc}",
            f"--p2p.laddr=tcp://{host}:{node.ports.p2p}",
            f"--p2p.persistent_peers={peers}",
            f"--grpc.address={host}:{node.ports.grpc}",
            f"--api.address=tcp://{host}:{node.ports.api}",
            f"--rpc.pprof_laddr={host}:{node.ports.pprof}",
            f"--minimum-gas-prices=0{self._chain.bond_denom}",
        ]
        log = (node.home / "node.log").open("ab")
        self._logs.append(log)
        node.process = self._popen(
            argv,
            stdout=log,
            stderr=subprocess.STDOUT,
            env={**os.environ, **self._env()},
        )
        logger.debug("Started %s (pid %s)", node.moniker, node.process.pid)

    def _env(self) -> dict[str, str]:
        # Node flags without a CLI switch, set through the binary's env prefix.
        prefix = Path(self._chain.binary).name.upper().replace("-", "_")
        return {
            f"{prefix}_P2P_ALLOW_DUPLICATE_IP": "true",
            f"{prefix}_P2P_ADDR_BOOK_STRICT": "false",
        }

    def _genesis_cmd(self, name: str) -> list[str]:
        if self._chain.genesis_subcommand:
            return [self._chain.genesis_subcommand, name]
        return [name]

    @staticmethod
    def _genesis_path(home: Path) -> Path:
        return home / "config" / "genesis.json"
