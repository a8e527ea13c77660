"""Rich Console factory and theme for empower-e2e output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

E2E_THEME = Theme(
    {
        "e2e.ok": "bold green",
        "e2e.error": "bold red",
        "e2e.warning": "bold yellow",
        "e2e.op": "bold cyan",
        "e2e.key": "dim",
        "e2e.address": "bold blue",
        "e2e.denom": "magenta",
        "e2e.status.new": "cyan",
        "e2e.status.approved": "green",
        "e2e.status.rejected": "red",
        "e2e.status.suspended": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=E2E_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Rich style for a project status (``NEW``, ``APPROVED``, ...)."""
    return f"e2e.status.{status.lower()}"
