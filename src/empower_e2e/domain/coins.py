"""Coin and DecCoin models plus the few coin-set operations genesis needs."""

from __future__ import annotations

import re
from collections.abc import Iterable
from decimal import Decimal
from typing import Annotated

from pydantic import Field, PlainSerializer

from empower_e2e.domain.types import ProtoModel, Uint64

_COIN_RE = re.compile(r"^(\d+)([a-zA-Z][a-zA-Z0-9/:._-]{2,127})$")

_DEC_PRECISION = 18

Dec = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(lambda v: f"{v:.{_DEC_PRECISION}f}", return_type=str, when_used="json"),
]


class Coin(ProtoModel):
    denom: str
    amount: Uint64

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


class DecCoin(ProtoModel):
    denom: str
    amount: Dec

    @classmethod
    def from_coin(cls, coin: Coin) -> DecCoin:
        return cls(denom=coin.denom, amount=Decimal(coin.amount))


def parse_coin(text: str) -> Coin:
    """Parse ``"10stake"`` into a Coin.

    Raises:
        ValueError: If *text* is not ``<amount><denom>``.
    """
    match = _COIN_RE.match(text.strip())
    if match is None:
        msg = f"Invalid coin {text!r}: expected <amount><denom>, e.g. '10stake'"
        raise ValueError(msg)
    return Coin(denom=match.group(2), amount=int(match.group(1)))


def add_coins(left: Iterable[Coin], right: Iterable[Coin]) -> list[Coin]:
    """Sum two coin sets; result is sorted by denom like the chain's ``Coins``."""
    totals: dict[str, int] = {}
    for coin in (*left, *right):
        totals[coin.denom] = totals.get(coin.denom, 0) + coin.amount
    return [Coin(denom=d, amount=a) for d, a in sorted(totals.items())]


def add_dec_coins(left: Iterable[DecCoin], right: Iterable[DecCoin]) -> list[DecCoin]:
    """Sum two dec-coin sets, sorted by denom."""
    totals: dict[str, Decimal] = {}
    for coin in (*left, *right):
        totals[coin.denom] = totals.get(coin.denom, Decimal(0)) + coin.amount
    return [DecCoin(denom=d, amount=a) for d, a in sorted(totals.items())]
