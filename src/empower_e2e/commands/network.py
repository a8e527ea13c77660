"""Command group: run a local validator network outside pytest."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import click

from empower_e2e.commands._base import E2EGroup

if TYPE_CHECKING:
    from empower_e2e.commands._context import AppContext

_IDLE_SECONDS = 1.0


@click.group(
    cls=E2EGroup,
    examples="""\
  empower-e2e network up
  empower-e2e --json network up --once""",
)
def network() -> None:
    """Start and inspect local validator networks."""


@network.command(
    examples="""\
  empower-e2e network up            # runs until Ctrl-C
  empower-e2e -c ci.toml network up --once""",
)
@click.option("--once", is_flag=True, help="Stop the network as soon as it is ready.")
@click.pass_obj
def up(app: AppContext, once: bool) -> None:
    """Start a seeded network with provisioned identities."""
    from empower_e2e.errors import HarnessError
    from empower_e2e.services.result import ServiceResult
    from empower_e2e.testing.context import E2EContext

    try:
        with E2EContext.open(app.settings) as context:
            app.emit(
                ServiceResult(
                    ok=True,
                    op="network_up",
                    data={
                        "chain_id": app.settings.chain.chain_id,
                        "height": context.wait_for_next_block(),
                        "validators": [
                            {
                                "moniker": v.moniker,
                                "rpc_url": v.rpc_url,
                                "home": str(v.home),
                            }
                            for v in context.validators
                        ],
                    },
                )
            )
            if once:
                return
            try:
                while True:
                    time.sleep(_IDLE_SECONDS)
            except KeyboardInterrupt:
                click.echo("Stopping network...", err=True)
    except HarnessError as exc:
        app.emit(ServiceResult.failure("network_up", exc))
