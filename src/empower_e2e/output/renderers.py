"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers are
dispatched by ``result.op`` in :func:`render_result`; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from empower_e2e.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from empower_e2e.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: names/addresses or a status line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    armor = result.data.get("armor")
    if isinstance(armor, str):
        return armor.rstrip("\n")

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(
            f"{item.get('name', '')}\t{item.get('address', '')}".strip()
            for item in items
            if isinstance(item, dict)
        )
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="e2e.ok"), Text(f"  {result.op}", style="e2e.op"))


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


# ── Renderers ─────────────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        console.print(Text(f"  {key}: ", style="e2e.key"), Text(_format_value(value)), sep="")


def _render_error(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    error = result.error
    code = error.code if error else "Error"
    message = error.message if error else "Unknown error"
    console.print(Text("ERROR", style="e2e.error"), Text(f"  {result.op}", style="e2e.op"))
    console.print(Text(f"  {code}: {message}"))
    if verbose and error and error.detail:
        for key, value in error.detail.items():
            console.print(Text(f"  {key}: ", style="e2e.key"), Text(_format_value(value)), sep="")


def _render_identities(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    _status_line(console, result)
    items = result.data.get("items", [])
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Name")
    table.add_column("Address", style="e2e.address")
    show_match = any("matches" in item for item in items)
    if show_match:
        table.add_column("Derives", justify="center")
    for item in items:
        row = [item.get("name", ""), item.get("address", "")]
        if show_match:
            ok = item.get("matches", False)
            row.append(Text("yes" if ok else "NO", style="e2e.ok" if ok else "e2e.error"))
        table.add_row(*row)
    console.print(table)


def _render_armor(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    console.print(Text(result.data.get("armor", "").rstrip("\n")))


def _render_compose(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    _status_line(console, result)
    data = result.data
    console.print(
        Text(
            f"  wrote {data.get('output', '?')}: {data.get('issuers', 0)} issuers, "
            f"{data.get('applicants', 0)} applicants, {data.get('projects', 0)} projects"
        )
    )
    table = Table(title="Credit collections", box=None, show_header=True, header_style="bold")
    table.add_column("Denom", style="e2e.denom")
    table.add_column("Project", justify="right")
    table.add_column("Active", justify="right")
    table.add_column("Retired", justify="right")
    for collection in data.get("credit_collections", []):
        table.add_row(
            collection["denom"],
            str(collection["project_id"]),
            str(collection["active"]),
            str(collection["retired"]),
        )
    console.print(table)
    if verbose:
        counters = _format_value(data.get("id_counters"))
        console.print(Text("  id_counters: ", style="e2e.key"), Text(counters), sep="")


def _render_check(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    _status_line(console, result)
    console.print(f"  {result.data.get('count', 0)} issue(s)")
    statuses = result.data.get("project_statuses", {})
    if statuses:
        line = Text("  projects: ")
        for status, count in statuses.items():
            line.append(f"{status}={count} ", style=style_for_status(status))
        console.print(line)


def _render_decoded(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    data = result.data
    body = json.dumps(data.get("response", {}), indent=2)
    title = f"{data.get('type', '?')}  (tx {data.get('txhash', '?')}, height {data.get('height')})"
    console.print(Panel(Text(body), title=Text(title), title_align="left"))


def _render_network(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    _status_line(console, result)
    data = result.data
    console.print(Text(f"  chain {data.get('chain_id')} live at height {data.get('height')}"))
    table = Table(box=None, show_header=True, header_style="bold")
    table.add_column("Validator")
    table.add_column("RPC")
    table.add_column("Home", style="e2e.key")
    for validator in data.get("validators", []):
        table.add_row(validator["moniker"], validator["rpc_url"], validator["home"])
    console.print(table)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "list_fixtures": _render_identities,
    "provision_identities": _render_identities,
    "list_keys": _render_identities,
    "import_key": _render_identities,
    "export_key": _render_armor,
    "list_types": _render_identities,
    "compose_genesis": _render_compose,
    "check_genesis": _render_check,
    "decode_tx": _render_decoded,
    "network_up": _render_network,
}
