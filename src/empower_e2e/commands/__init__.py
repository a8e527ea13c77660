"""Subcommand modules for empower-e2e.

Provides register_commands() which uses deferred imports to keep
``empower-e2e --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register every command group on the root CLI group."""
    from empower_e2e.commands.genesis import genesis
    from empower_e2e.commands.keys import keys
    from empower_e2e.commands.network import network
    from empower_e2e.commands.tx import tx

    cli.add_command(genesis)
    cli.add_command(keys)
    cli.add_command(tx)
    cli.add_command(network)
