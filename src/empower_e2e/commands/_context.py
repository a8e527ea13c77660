"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Converts harness exceptions into failed results and
centralizes result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import click

from empower_e2e.errors import HarnessError
from empower_e2e.output.formatters import OutputSettings, format_result
from empower_e2e.services.result import ServiceResult

if TYPE_CHECKING:
    from empower_e2e.config.settings import HarnessSettings


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: HarnessSettings) -> None:
        self.settings = settings

        from empower_e2e.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    def run(self, op: str, action: Callable[[], ServiceResult]) -> None:
        """Run *action* and emit its result; a ``HarnessError`` becomes a failed result."""
        try:
            result = action()
        except HarnessError as exc:
            result = ServiceResult.failure(op, exc)
        self.emit(result)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
