"""``empower-e2e`` entry point.

The root group turns global flags into ``HarnessSettings`` once and hands
them to every subcommand through ``AppContext``.
"""

from __future__ import annotations

from pathlib import Path

import click

from empower_e2e import __version__
from empower_e2e.commands import register_commands
from empower_e2e.commands._context import AppContext
from empower_e2e.config.settings import HarnessSettings


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="empower-e2e")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON on stdout.")
@click.option("-q", "--quiet", is_flag=True, help="Print only the essential result.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging for harness operations.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option(
    "-c",
    "--config",
    "config_path",
    default=None,
    help="Use this empower-e2e.toml instead of searching for one.",
)
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Search for empower-e2e.toml from here instead of the working directory.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    project_root: Path | None,
) -> None:
    """End-to-end harness for the EmpowerChain plasticcredit ledger."""
    settings = HarnessSettings.from_cli(
        config_path=config_path,
        project_root=project_root,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
