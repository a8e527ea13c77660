"""TxResolver: from a sync-broadcast acknowledgment to a typed response.

Lifecycle (see :mod:`empower_e2e.domain.lifecycle`)::

    submitted -> rejected                       non-zero ack code, never polled
    submitted -> pending -> failed              included, execution failed
    submitted -> pending -> confirmed -> decoded

Every transition is checked against the transition table and logged as a
structured ``tx.transition`` event.
"""

from __future__ import annotations

import structlog
from google.protobuf.message import Message

from empower_e2e.domain.lifecycle import TxState, is_valid_transition
from empower_e2e.domain.tx import TxResponse, tx_hash_bytes
from empower_e2e.errors import (
    AdmissionRejectedError,
    DecodeError,
    DecodeLayer,
    ExecutionFailedError,
)
from empower_e2e.infrastructure.chaincli import TxLookup, parse_json_output
from empower_e2e.messages.envelope import decode_response

logger = structlog.get_logger(__name__)


class _Tracker:
    """Current lifecycle state of one transaction."""

    def __init__(self) -> None:
        self.state = TxState.SUBMITTED
        self.txhash = ""

    def advance(self, target: TxState, **fields: object) -> None:
        if not is_valid_transition(self.state, target):
            msg = f"Invalid transaction transition {self.state} -> {target}"
            raise RuntimeError(msg)
        logger.debug(
            "tx.transition",
            txhash=self.txhash,
            source=str(self.state),
            target=str(target),
            **fields,
        )
        self.state = target


class TxResolver:
    """Resolves acknowledgments through a ``TxLookup`` collaborator."""

    def __init__(self, lookup: TxLookup) -> None:
        self._lookup = lookup

    def resolve(self, ack: bytes | str, expected: type[Message] | str) -> Message:
        """Confirm the acknowledged transaction and decode its first message response.

        Raises:
            DecodeError: Malformed acknowledgment, or a response layer that
                does not decode (``layer`` says which).
            AdmissionRejectedError: Non-zero acknowledgment code.
            ConfirmationTimeoutError: Never found in a block within the policy.
            ExecutionFailedError: Included with a non-zero code.
        """
        tracker = _Tracker()
        tx_hash = self._admit(tracker, ack)
        confirmed = self._confirm(tracker, tx_hash)
        return self._decode(tracker, confirmed, expected)

    # --- phases ---

    def _admit(self, tracker: _Tracker, ack: bytes | str) -> bytes:
        try:
            text = ack.decode("utf-8") if isinstance(ack, bytes) else ack
            response = TxResponse.model_validate(parse_json_output(text))
        except ValueError as exc:
            raise DecodeError(
                DecodeLayer.ACKNOWLEDGMENT, f"Cannot parse acknowledgment: {exc}"
            ) from exc
        tracker.txhash = response.txhash

        if not response.ok:
            tracker.advance(TxState.REJECTED, code=response.code, codespace=response.codespace)
            raise AdmissionRejectedError(
                response.code,
                response.raw_log,
                codespace=response.codespace,
                txhash=response.txhash,
            )

        try:
            tx_hash = tx_hash_bytes(response.txhash)
        except ValueError as exc:
            raise DecodeError(
                DecodeLayer.ACKNOWLEDGMENT, f"Bad transaction hash {response.txhash!r}: {exc}"
            ) from exc
        tracker.advance(TxState.PENDING)
        return tx_hash

    def _confirm(self, tracker: _Tracker, tx_hash: bytes) -> TxResponse:
        confirmed = self._lookup.wait_for_tx(tx_hash)
        if not confirmed.ok:
            tracker.advance(TxState.FAILED, code=confirmed.code, height=confirmed.height)
            raise ExecutionFailedError(
                tracker.txhash, confirmed.code, confirmed.raw_log, codespace=confirmed.codespace
            )
        tracker.advance(TxState.CONFIRMED, height=confirmed.height)
        return confirmed

    def _decode(
        self, tracker: _Tracker, confirmed: TxResponse, expected: type[Message] | str
    ) -> Message:
        message = decode_response(confirmed.data, expected)
        tracker.advance(TxState.DECODED, type=message.DESCRIPTOR.full_name)
        return message
