"""Command group: compose and check genesis files offline."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from empower_e2e.commands._base import E2EGroup

if TYPE_CHECKING:
    from empower_e2e.commands._context import AppContext
    from empower_e2e.domain.genesis import GenesisDocument
    from empower_e2e.domain.plasticcredit import PlasticcreditGenesis
    from empower_e2e.services.result import ServiceResult


@click.group(
    cls=E2EGroup,
    examples="""\
  empower-e2e genesis compose ~/.empowerd/config/genesis.json -o e2e-genesis.json
  empower-e2e genesis check e2e-genesis.json""",
)
def genesis() -> None:
    """Compose and validate genesis files."""


def _load(path: Path) -> GenesisDocument:
    from empower_e2e.domain.genesis import GenesisDocument

    try:
        return GenesisDocument.from_file(path)
    except ValueError as exc:
        msg = f"Cannot read genesis from {path}: {exc}"
        raise click.ClickException(msg) from exc


def _ledger_summary(ledger: PlasticcreditGenesis) -> dict[str, Any]:
    return {
        "issuers": len(ledger.issuers),
        "applicants": len(ledger.applicants),
        "projects": len(ledger.projects),
        "credit_classes": [c.abbreviation for c in ledger.credit_classes],
        "credit_collections": [
            {
                "denom": c.denom,
                "project_id": c.project_id,
                "active": c.total_amount.active,
                "retired": c.total_amount.retired,
            }
            for c in ledger.credit_collections
        ],
        "id_counters": ledger.id_counters.model_dump(),
    }


@genesis.command(
    examples="""\
  empower-e2e genesis compose base.json -o e2e-genesis.json
  EMPOWER_E2E_CHAIN__BOND_DENOM=umpwr empower-e2e genesis compose base.json -o out.json""",
)
@click.argument("base", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the composed genesis.",
)
@click.pass_obj
def compose(app: AppContext, base: Path, output: Path) -> None:
    """Seed BASE (a genesis file or bare app state) with the e2e fixtures."""
    from empower_e2e.domain.plasticcredit import MODULE_NAME, PlasticcreditGenesis
    from empower_e2e.services.genesis import GenesisComposer
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        composed = GenesisComposer(app.settings.chain).compose(_load(base))
        output.write_text(composed.to_json(), encoding="utf-8")
        ledger = composed.read(MODULE_NAME, PlasticcreditGenesis)
        return ServiceResult(
            ok=True,
            op="compose_genesis",
            data={"output": str(output), **_ledger_summary(ledger)},
        )

    app.run("compose_genesis", action)


@genesis.command(
    examples="""\
  empower-e2e genesis check e2e-genesis.json
  empower-e2e --json genesis check e2e-genesis.json""",
)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def check(app: AppContext, path: Path) -> None:
    """Check the plastic credit ledger in PATH for integrity issues."""
    from empower_e2e.domain.plasticcredit import (
        MODULE_NAME,
        PlasticcreditGenesis,
        validate_ledger,
    )
    from empower_e2e.errors import GenesisIntegrityError
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        ledger = _load(path).read(MODULE_NAME, PlasticcreditGenesis)
        issues = validate_ledger(ledger)
        if issues:
            raise GenesisIntegrityError(issues)
        statuses = Counter(str(p.status) for p in ledger.projects)
        return ServiceResult(
            ok=True,
            op="check_genesis",
            data={
                "issues": issues,
                "count": len(issues),
                "project_statuses": dict(sorted(statuses.items())),
            },
        )

    app.run("check_genesis", action)
