"""Command group: fixture identities and the local keyring."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from empower_e2e.commands._base import E2EGroup

if TYPE_CHECKING:
    from empower_e2e.commands._context import AppContext
    from empower_e2e.infrastructure.keyring import LocalKeyring
    from empower_e2e.services.result import ServiceResult

_home_option = click.option(
    "--home",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Node home holding the local keyring.",
)


@click.group(
    cls=E2EGroup,
    examples="""\
  empower-e2e keys fixtures
  empower-e2e keys provision --home ./node0
  empower-e2e keys export issuer --home ./node0 > issuer.armor""",
)
def keys() -> None:
    """Fixture identities and the local keyring."""


def _open(app: AppContext, home: Path) -> LocalKeyring:
    from empower_e2e.infrastructure.keyring import LocalKeyring

    return LocalKeyring(home, prefix=app.settings.chain.bech32_prefix)


@keys.command()
@click.pass_obj
def fixtures(app: AppContext) -> None:
    """List the fixture identities and check each mnemonic derives its address."""
    from empower_e2e.domain.fixtures import FIXTURE_IDENTITIES
    from empower_e2e.infrastructure.hd import derive_address
    from empower_e2e.services.result import ServiceResult

    prefix = app.settings.chain.bech32_prefix

    def action() -> ServiceResult:
        items = []
        warnings = []
        for fixture in FIXTURE_IDENTITIES:
            derived = derive_address(fixture.mnemonic, prefix=prefix, hd_path=fixture.hd_path)
            matches = derived == fixture.address
            if not matches:
                warnings.append(f"{fixture.name} derives {derived}")
            items.append(
                {
                    "name": fixture.name,
                    "address": fixture.address,
                    "hd_path": fixture.hd_path,
                    "matches": matches,
                }
            )
        return ServiceResult(
            ok=True,
            op="list_fixtures",
            data={"items": items, "count": len(items)},
            warnings=warnings,
        )

    app.run("list_fixtures", action)


@keys.command(
    examples="""\
  empower-e2e keys provision --home ./node0""",
)
@_home_option
@click.pass_obj
def provision(app: AppContext, home: Path) -> None:
    """Create every fixture identity in the local keyring under HOME."""
    from empower_e2e.services.identity import IdentityManager
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        keyring = _open(app, home)
        try:
            provisioned = IdentityManager(
                keyring, prefix=app.settings.chain.bech32_prefix
            ).provision()
        finally:
            keyring.close()
        items = [{"name": name, "address": address} for name, address in provisioned.items()]
        return ServiceResult(
            ok=True, op="provision_identities", data={"items": items, "count": len(items)}
        )

    app.run("provision_identities", action)


@keys.command(name="list")
@_home_option
@click.pass_obj
def list_keys(app: AppContext, home: Path) -> None:
    """List identities in the local keyring under HOME."""
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        keyring = _open(app, home)
        try:
            records = keyring.list()
        finally:
            keyring.close()
        items = [
            {"name": r.name, "address": r.address, "algorithm": r.algorithm, "hd_path": r.hd_path}
            for r in records
        ]
        return ServiceResult(ok=True, op="list_keys", data={"items": items, "count": len(items)})

    app.run("list_keys", action)


@keys.command(
    examples="""\
  empower-e2e keys export issuer --home ./node0 > issuer.armor
  empower-e2e keys export issuer --home ./node0 --passphrase 's3cret!!'""",
)
@click.argument("name")
@_home_option
@click.option(
    "--passphrase",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Passphrase protecting the exported armor.",
)
@click.pass_obj
def export(app: AppContext, name: str, home: Path, passphrase: str) -> None:
    """Print identity NAME as passphrase-protected armor."""
    from empower_e2e.services.identity import IdentityManager
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        keyring = _open(app, home)
        try:
            manager = IdentityManager(keyring, prefix=app.settings.chain.bech32_prefix)
            armor = manager.export_identity(name, passphrase)
        finally:
            keyring.close()
        return ServiceResult(ok=True, op="export_key", data={"name": name, "armor": armor})

    app.run("export_key", action)


@keys.command(name="import")
@click.argument("name")
@click.argument("armor_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_home_option
@click.option("--passphrase", prompt=True, hide_input=True, help="Passphrase of the armor.")
@click.pass_obj
def import_key(
    app: AppContext, name: str, armor_file: Path, home: Path, passphrase: str
) -> None:
    """Import armored key ARMOR_FILE as identity NAME."""
    from empower_e2e.services.identity import IdentityManager
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        keyring = _open(app, home)
        try:
            manager = IdentityManager(keyring, prefix=app.settings.chain.bech32_prefix)
            address = manager.import_identity(
                name, armor_file.read_text(encoding="utf-8"), passphrase
            )
        finally:
            keyring.close()
        return ServiceResult(
            ok=True,
            op="import_key",
            data={"items": [{"name": name, "address": address}], "count": 1},
        )

    app.run("import_key", action)
