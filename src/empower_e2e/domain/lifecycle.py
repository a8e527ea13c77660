"""Transaction resolution lifecycle.

A sync broadcast only proves local mempool admission. Resolution walks a
submitted transaction through admission, block inclusion and decoding:

    submitted ──► pending ──► confirmed ──► decoded
        │             │            │
        ▼             ▼            ▼
    rejected      (timeout)     failed

``rejected`` and ``failed`` are terminal. A confirmation timeout leaves the
transaction ``pending``: it may still land, the harness just stops waiting.
"""

from __future__ import annotations

from enum import StrEnum


class TxState(StrEnum):
    SUBMITTED = "submitted"
    REJECTED = "rejected"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    DECODED = "decoded"


TX_TRANSITIONS: dict[str, list[str]] = {
    "submitted": ["pending", "rejected"],
    "pending": ["confirmed", "failed"],
    "confirmed": ["decoded"],
    "rejected": [],
    "failed": [],
    "decoded": [],
}

TERMINAL_STATES = frozenset(state for state, targets in TX_TRANSITIONS.items() if not targets)


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = TX_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    return target in transitions.get(current, [])
