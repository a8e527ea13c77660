"""NetworkHarness: start the validator set and gate on liveness.

``start`` freezes the genesis, asks the launcher for running validators and
blocks until the first one reports a committed block. Any failure along the
way releases what was started before ``SetupFatalError`` propagates.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from empower_e2e.config.models import RetryPolicy
from empower_e2e.domain.genesis import GenesisDocument
from empower_e2e.errors import PollTimeoutError, SetupFatalError
from empower_e2e.infrastructure.launcher import Launcher, ValidatorNode
from empower_e2e.infrastructure.polling import poll
from empower_e2e.infrastructure.rpc import CometRpc

logger = structlog.get_logger(__name__)

RpcFactory = Callable[[str], CometRpc]


@dataclass
class NetworkHandle:
    """A running network: its frozen genesis, validators and an RPC client."""

    genesis: GenesisDocument
    validators: list[ValidatorNode]
    rpc: CometRpc
    stopped: bool = False

    @property
    def primary(self) -> ValidatorNode:
        """Validator 0: the node tests submit through."""
        return self.validators[0]


class NetworkHarness:
    def __init__(
        self,
        launcher: Launcher,
        *,
        liveness: RetryPolicy,
        rpc_factory: RpcFactory = CometRpc,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._launcher = launcher
        self._liveness = liveness
        self._rpc_factory = rpc_factory
        self._sleep = sleep

    def start(self, genesis: GenesisDocument) -> NetworkHandle:
        """Launch every validator on *genesis* and wait for the first block.

        Raises:
            SetupFatalError: Launch failed or no block was produced before a
                validator exited or the liveness policy ran out.
        """
        genesis.freeze()
        try:
            validators = self._launcher.launch(genesis)
        except Exception as exc:
            self._launcher.shutdown()
            msg = f"Failed to launch validators: {exc}"
            raise SetupFatalError(msg) from exc
        if not validators:
            self._launcher.shutdown()
            msg = "Launcher returned no validators"
            raise SetupFatalError(msg)

        handle = NetworkHandle(
            genesis=genesis,
            validators=validators,
            rpc=self._rpc_factory(validators[0].rpc_url),
        )
        try:
            height = self._wait_live(handle)
        except PollTimeoutError as exc:
            self.stop(handle)
            msg = f"Network did not become live: {exc}"
            raise SetupFatalError(msg) from exc
        except SetupFatalError:
            self.stop(handle)
            raise

        logger.info("network_live", validators=len(validators), height=height)
        return handle

    def _wait_live(self, handle: NetworkHandle) -> int:
        def first_block() -> int | None:
            _check_processes(handle.validators)
            current = handle.rpc.latest_height()
            if current is not None and current >= 1:
                return current
            return None

        return poll(first_block, policy=self._liveness, what="first block", sleep=self._sleep)

    def latest_height(self, handle: NetworkHandle) -> int | None:
        return handle.rpc.latest_height()

    def wait_for_height(self, handle: NetworkHandle, height: int) -> int:
        """Block until the chain reaches *height*; returns the height observed.

        Raises:
            PollTimeoutError: Liveness policy exhausted first.
        """

        def reached() -> int | None:
            current = handle.rpc.latest_height()
            if current is not None and current >= height:
                return current
            return None

        return poll(
            reached, policy=self._liveness, what=f"block height {height}", sleep=self._sleep
        )

    def wait_for_next_block(self, handle: NetworkHandle) -> int:
        """Block until one more block than the current height is committed."""
        current = handle.rpc.latest_height() or 0
        return self.wait_for_height(handle, current + 1)

    def stop(self, handle: NetworkHandle) -> None:
        """Stop the network. Safe to call more than once."""
        if handle.stopped:
            return
        handle.stopped = True
        handle.rpc.close()
        self._launcher.shutdown()
        logger.info("network_stopped")


def _check_processes(validators: list[ValidatorNode]) -> None:
    """Raise ``SetupFatalError`` if any validator process has already exited."""
    for node in validators:
        if node.process is None:
            continue
        code = node.process.poll()
        if code is not None:
            msg = f"Validator {node.moniker} exited with code {code} before the first block"
            raise SetupFatalError(msg)
