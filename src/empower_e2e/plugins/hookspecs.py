"""Pluggy hook specifications for suite lifecycle events.

``e2e_modify_genesis`` runs after the fixtures are composed and before the
genesis is frozen. The two notification hooks bracket the network's life.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from empower_e2e.domain.genesis import GenesisDocument
    from empower_e2e.services.network import NetworkHandle

PROJECT_NAME = "empower_e2e"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class E2EHookSpec:
    """Hook specifications for the empower_e2e plugin system."""

    @hookspec
    def e2e_modify_genesis(self, genesis: GenesisDocument) -> None:
        """Edit the composed genesis in place (via ``genesis.write``)."""

    @hookspec
    def e2e_network_started(self, network: NetworkHandle) -> None:
        """Called once the network is live and identities are provisioned."""

    @hookspec
    def e2e_network_stopping(self, network: NetworkHandle) -> None:
        """Called before the network is torn down."""
