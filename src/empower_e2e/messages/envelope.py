"""Decoding of a confirmed transaction's ``data`` field.

``data`` is nested three deep: hex text, wrapping a serialized
``TxMsgData`` envelope, whose ``msg_responses`` are ``Any`` values packing
one typed response per message in the transaction. Each layer fails with
its own ``DecodeError.layer`` so a test can tell which one broke.
"""

from __future__ import annotations

from google.protobuf import any_pb2
from google.protobuf.message import DecodeError as ProtoDecodeError
from google.protobuf.message import Message

from empower_e2e.errors import DecodeError, DecodeLayer
from empower_e2e.messages.registry import TX_MSG_DATA, get_message_class, type_url


def decode_envelope(data_hex: str) -> Message:
    """Hex-decode *data_hex* and parse it as ``TxMsgData``."""
    try:
        raw = bytes.fromhex(data_hex)
    except ValueError as exc:
        raise DecodeError(DecodeLayer.HEX, f"Response data is not hex: {exc}") from exc

    envelope_cls = get_message_class(TX_MSG_DATA)
    try:
        return envelope_cls.FromString(raw)
    except ProtoDecodeError as exc:
        raise DecodeError(DecodeLayer.ENVELOPE, f"Cannot parse TxMsgData: {exc}") from exc


def first_response(data_hex: str) -> any_pb2.Any:
    """The packed result of the transaction's first message."""
    envelope = decode_envelope(data_hex)
    if not envelope.msg_responses:
        raise DecodeError(DecodeLayer.ENVELOPE, "TxMsgData carries no message responses")
    return envelope.msg_responses[0]


def unpack(packed: any_pb2.Any, expected: type[Message]) -> Message:
    """Unpack *packed* into *expected*, checking the type URL first."""
    want = type_url(expected)
    if packed.type_url != want:
        raise DecodeError(
            DecodeLayer.TYPED_PAYLOAD,
            f"First response is {packed.type_url or '<empty>'}, expected {want}",
        )
    try:
        return expected.FromString(packed.value)
    except ProtoDecodeError as exc:
        raise DecodeError(
            DecodeLayer.TYPED_PAYLOAD, f"Cannot parse {want} payload: {exc}"
        ) from exc


def decode_response(data_hex: str, expected: type[Message] | str) -> Message:
    """Decode the first message response in *data_hex* as *expected*.

    *expected* is a message class or a registry name.
    """
    if isinstance(expected, str):
        try:
            expected = get_message_class(expected)
        except KeyError as exc:
            raise DecodeError(DecodeLayer.TYPED_PAYLOAD, str(exc)) from exc
    return unpack(first_response(data_hex), expected)
