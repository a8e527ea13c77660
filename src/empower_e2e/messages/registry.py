"""Message registry: protobuf classes for the response types the harness decodes.

The descriptors are declared here and added to the default descriptor pool
with ``AddSerializedFile``, the same call generated ``_pb2`` modules make.
If another installed library already registered a message under the same
full name, its definition is reused instead.
"""

from __future__ import annotations

from google.protobuf import any_pb2, descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

_FD = descriptor_pb2.FieldDescriptorProto

_SCALARS = {
    "string": _FD.TYPE_STRING,
    "bytes": _FD.TYPE_BYTES,
    "uint64": _FD.TYPE_UINT64,
}

ANY_PROTO = any_pb2.DESCRIPTOR.name

TX_MSG_DATA = "cosmos.base.abci.v1beta1.TxMsgData"
PLASTICCREDIT_PACKAGE = "empowerchain.plasticcredit"
GOV_V1_PACKAGE = "cosmos.gov.v1"

# (field name, number, type, repeated)
FieldSpec = tuple[str, int, str, bool]


def _field(name: str, number: int, type_: str, *, repeated: bool = False) -> FieldSpec:
    return (name, number, type_, repeated)


def _message(name: str, *fields: FieldSpec) -> descriptor_pb2.DescriptorProto:
    message = descriptor_pb2.DescriptorProto(name=name)
    for field_name, number, type_, repeated in fields:
        field = message.field.add(name=field_name, number=number)
        field.label = _FD.LABEL_REPEATED if repeated else _FD.LABEL_OPTIONAL
        if type_ in _SCALARS:
            field.type = _SCALARS[type_]
        else:
            field.type = _FD.TYPE_MESSAGE
            field.type_name = f".{type_}"
    return message


def _file(
    name: str,
    package: str,
    messages: list[descriptor_pb2.DescriptorProto],
    dependencies: tuple[str, ...] = (),
) -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=name, package=package, syntax="proto3", dependency=list(dependencies)
    )
    file_proto.message_type.extend(messages)
    return file_proto


def _empty(*names: str) -> list[descriptor_pb2.DescriptorProto]:
    return [_message(name) for name in names]


_ABCI = _file(
    "empower_e2e/cosmos/base/abci/v1beta1/abci.proto",
    "cosmos.base.abci.v1beta1",
    [
        _message("MsgData", _field("msg_type", 1, "string"), _field("data", 2, "bytes")),
        _message(
            "TxMsgData",
            _field("data", 1, "cosmos.base.abci.v1beta1.MsgData", repeated=True),
            _field("msg_responses", 2, "google.protobuf.Any", repeated=True),
        ),
    ],
    (ANY_PROTO,),
)

_PLASTICCREDIT_TYPES = _file(
    "empower_e2e/empowerchain/plasticcredit/types.proto",
    PLASTICCREDIT_PACKAGE,
    [
        _message("CreditAmount", _field("active", 1, "uint64"), _field("retired", 2, "uint64")),
        _message(
            "CreditCollection",
            _field("denom", 1, "string"),
            _field("project_id", 2, "uint64"),
            _field("total_amount", 3, f"{PLASTICCREDIT_PACKAGE}.CreditAmount"),
        ),
        _message(
            "CreditBalance",
            _field("owner", 1, "string"),
            _field("denom", 2, "string"),
            _field("balance", 3, f"{PLASTICCREDIT_PACKAGE}.CreditAmount"),
        ),
    ],
)

_PLASTICCREDIT_TX = _file(
    "empower_e2e/empowerchain/plasticcredit/tx.proto",
    PLASTICCREDIT_PACKAGE,
    [
        _message("MsgCreateIssuerResponse", _field("issuer_id", 1, "uint64")),
        _message("MsgCreateApplicantResponse", _field("applicant_id", 1, "uint64")),
        _message("MsgCreateProjectResponse", _field("project_id", 1, "uint64")),
        _message(
            "MsgIssueCreditsResponse",
            _field("collection", 1, f"{PLASTICCREDIT_PACKAGE}.CreditCollection"),
        ),
        _message(
            "MsgRetireCreditsResponse",
            _field("balance", 1, f"{PLASTICCREDIT_PACKAGE}.CreditBalance"),
        ),
        *_empty(
            "MsgUpdateParamsResponse",
            "MsgUpdateIssuerResponse",
            "MsgUpdateApplicantResponse",
            "MsgCreateCreditClassResponse",
            "MsgUpdateCreditClassResponse",
            "MsgUpdateProjectResponse",
            "MsgApproveProjectResponse",
            "MsgRejectProjectResponse",
            "MsgSuspendProjectResponse",
            "MsgTransferCreditsResponse",
        ),
    ],
    (_PLASTICCREDIT_TYPES.name,),
)

_GOV_V1_TX = _file(
    "empower_e2e/cosmos/gov/v1/tx.proto",
    GOV_V1_PACKAGE,
    [
        _message("MsgSubmitProposalResponse", _field("proposal_id", 1, "uint64")),
        *_empty("MsgVoteResponse", "MsgVoteWeightedResponse", "MsgDepositResponse"),
    ],
)

_FILES = (_ABCI, _PLASTICCREDIT_TYPES, _PLASTICCREDIT_TX, _GOV_V1_TX)


def _register_files(pool: descriptor_pool.DescriptorPool) -> None:
    # our file name -> name of the file that already defines its messages
    existing: dict[str, str] = {}
    for file_proto in _FILES:
        first = f"{file_proto.package}.{file_proto.message_type[0].name}"
        try:
            existing[file_proto.name] = pool.FindMessageTypeByName(first).file.name
            continue
        except KeyError:
            pass
        resolved = descriptor_pb2.FileDescriptorProto()
        resolved.CopyFrom(file_proto)
        resolved.ClearField("dependency")
        resolved.dependency.extend(existing.get(dep, dep) for dep in file_proto.dependency)
        pool.AddSerializedFile(resolved.SerializeToString())


_POOL = descriptor_pool.Default()
_register_files(_POOL)

MESSAGE_NAMES: tuple[str, ...] = tuple(
    f"{file_proto.package}.{message.name}"
    for file_proto in _FILES
    for message in file_proto.message_type
)


def resolve_name(name: str) -> str:
    """Expand a short message name (``MsgCreateIssuerResponse``) to its full name.

    Full names pass through unchanged. Raises ``KeyError`` for unknown or
    ambiguous short names.
    """
    if "." in name:
        return name
    matches = [full for full in MESSAGE_NAMES if full.rsplit(".", 1)[-1] == name]
    if len(matches) != 1:
        msg = f"Unknown or ambiguous message name: {name!r}"
        raise KeyError(msg)
    return matches[0]


def get_message_class(name: str) -> type[Message]:
    """Return the generated class for message *name* (full or short).

    Raises:
        KeyError: No such message in the default pool.
    """
    descriptor = _POOL.FindMessageTypeByName(resolve_name(name))
    return message_factory.GetMessageClass(descriptor)


def type_url(message_cls: type[Message]) -> str:
    """``Any.type_url`` under which the chain packs *message_cls*."""
    return f"/{message_cls.DESCRIPTOR.full_name}"
