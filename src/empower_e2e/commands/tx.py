"""Command group: offline transaction response decoding."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from empower_e2e.commands._base import E2EGroup

if TYPE_CHECKING:
    from empower_e2e.commands._context import AppContext
    from empower_e2e.services.result import ServiceResult


@click.group(
    cls=E2EGroup,
    examples="""\
  empowerd q tx $HASH --output json > tx.json
  empower-e2e tx decode tx.json --type MsgCreateProjectResponse
  empower-e2e tx types""",
)
def tx() -> None:
    """Decode confirmed transaction responses."""


@tx.command(
    examples="""\
  empower-e2e tx decode tx.json --type MsgIssueCreditsResponse
  empower-e2e --json tx decode tx.json -t empowerchain.plasticcredit.MsgCreateIssuerResponse""",
)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-t",
    "--type",
    "type_name",
    required=True,
    help="Expected response message (short or full name).",
)
@click.pass_obj
def decode(app: AppContext, path: Path, type_name: str) -> None:
    """Decode the first message response of the confirmed tx in PATH."""
    from google.protobuf.json_format import MessageToDict

    from empower_e2e.domain.tx import TxResponse
    from empower_e2e.errors import DecodeError, DecodeLayer, ExecutionFailedError
    from empower_e2e.infrastructure.chaincli import parse_json_output
    from empower_e2e.messages.envelope import decode_response
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        try:
            response = TxResponse.model_validate(
                parse_json_output(path.read_text(encoding="utf-8"))
            )
        except ValueError as exc:
            raise DecodeError(DecodeLayer.ACKNOWLEDGMENT, f"Cannot parse {path}: {exc}") from exc
        if not response.ok:
            raise ExecutionFailedError(
                response.txhash, response.code, response.raw_log, codespace=response.codespace
            )
        message = decode_response(response.data, type_name)
        return ServiceResult(
            ok=True,
            op="decode_tx",
            data={
                "txhash": response.txhash,
                "height": response.height,
                "type": message.DESCRIPTOR.full_name,
                "response": MessageToDict(message, preserving_proto_field_name=True),
            },
        )

    app.run("decode_tx", action)


@tx.command()
@click.pass_obj
def types(app: AppContext) -> None:
    """List the response message types the decoder knows."""
    from empower_e2e.messages.registry import MESSAGE_NAMES
    from empower_e2e.services.result import ServiceResult

    def action() -> ServiceResult:
        items = [{"name": name} for name in MESSAGE_NAMES]
        return ServiceResult(
            ok=True, op="list_types", data={"items": items, "count": len(items)}
        )

    app.run("list_types", action)
