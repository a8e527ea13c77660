"""Click classes for the empower-e2e command tree.

Any command or group may be declared with an ``examples`` string. It is kept
out of ``--help`` and printed by an eager ``--examples`` flag instead.
"""

from __future__ import annotations

from typing import Any

import click


def _examples_option(text: str) -> click.Option:
    def show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(text)
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show,
        help="Show usage examples and exit.",
    )


class _WithExamples:
    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


class E2ECommand(_WithExamples, click.Command):
    pass


class E2EGroup(_WithExamples, click.Group):
    """Group whose subcommands and nested groups default to the e2e classes."""

    command_class = E2ECommand
    group_class = type
