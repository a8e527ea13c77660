"""Transaction responses as printed by the chain CLI (``--output json``).

The same shape serves two roles: the acknowledgment of a sync broadcast
(only ``code``, ``txhash`` and ``raw_log`` are meaningful) and the
confirmed transaction returned by ``query tx`` (``height``, ``data`` and
``logs`` filled in).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TX_HASH_LENGTH = 32


class TxResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    height: int = 0
    txhash: str = ""
    codespace: str = ""
    code: int = 0
    data: str = ""
    raw_log: str = ""
    logs: list[dict[str, Any]] = Field(default_factory=list)
    info: str = ""
    gas_wanted: int = 0
    gas_used: int = 0
    timestamp: str = ""
    events: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.code == 0


def tx_hash_bytes(txhash: str) -> bytes:
    """Decode a hex transaction hash into its 32 raw bytes.

    Raises:
        ValueError: If *txhash* is not 64 hex characters.
    """
    raw = bytes.fromhex(txhash)
    if len(raw) != TX_HASH_LENGTH:
        msg = f"Transaction hash must be {TX_HASH_LENGTH} bytes, got {len(raw)}"
        raise ValueError(msg)
    return raw


def tx_hash_hex(raw: bytes) -> str:
    """Render raw hash bytes the way the chain prints them (upper-case hex)."""
    return raw.hex().upper()
