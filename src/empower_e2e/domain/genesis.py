"""Genesis document and the generic module states the composer touches.

A genesis document is the chain's ``app_state``: an ordered mapping from
module name to that module's JSON state. The harness reads a module into a
typed model, edits the model, and writes it back. Once handed to the
network the document is frozen and every write raises.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, Field

from empower_e2e.domain.coins import Coin, DecCoin, add_coins
from empower_e2e.domain.types import ProtoModel, Uint64
from empower_e2e.errors import GenesisFrozenError, MissingModuleError

AUTH = "auth"
BANK = "bank"
GOV = "gov"
DISTRIBUTION = "distribution"

BASE_ACCOUNT_TYPE = "/cosmos.auth.v1beta1.BaseAccount"

M = TypeVar("M", bound=BaseModel)


# --- auth ---


class BaseAccount(ProtoModel):
    type_url: str = Field(default=BASE_ACCOUNT_TYPE, alias="@type")
    address: str
    pub_key: dict[str, Any] | None = None
    account_number: Uint64 = 0
    sequence: Uint64 = 0


class AuthGenesis(ProtoModel):
    params: dict[str, Any] = Field(default_factory=dict)
    # Accounts stay raw: module and vesting accounts have other shapes.
    accounts: list[dict[str, Any]] = Field(default_factory=list)

    def has_account(self, address: str) -> bool:
        return any(_account_address(a) == address for a in self.accounts)

    def with_base_account(self, address: str) -> AuthGenesis:
        """Append a base account for *address* unless one exists."""
        if self.has_account(address):
            return self
        account = BaseAccount(address=address).to_json_dict()
        return self.model_copy(update={"accounts": [*self.accounts, account]})


def _account_address(account: dict[str, Any]) -> str | None:
    if "address" in account:
        return account["address"]
    base = account.get("base_account") or account.get("base_vesting_account", {}).get(
        "base_account", {}
    )
    return base.get("address")


# --- bank ---


class Balance(ProtoModel):
    address: str
    coins: list[Coin] = Field(default_factory=list)


class BankGenesis(ProtoModel):
    params: dict[str, Any] = Field(default_factory=dict)
    balances: list[Balance] = Field(default_factory=list)
    supply: list[Coin] = Field(default_factory=list)

    def credit(self, address: str, coins: list[Coin]) -> BankGenesis:
        """Add *coins* to *address*, merging into an existing balance entry.

        An explicit (non-empty) ``supply`` is kept consistent by adding the
        same coins to it; an empty supply is computed by the chain at init.
        """
        balances = list(self.balances)
        for i, balance in enumerate(balances):
            if balance.address == address:
                balances[i] = balance.model_copy(
                    update={"coins": add_coins(balance.coins, coins)}
                )
                break
        else:
            balances.append(Balance(address=address, coins=add_coins([], coins)))
        supply = add_coins(self.supply, coins) if self.supply else self.supply
        return self.model_copy(update={"balances": balances, "supply": supply})

    def balance_of(self, address: str) -> list[Coin]:
        for balance in self.balances:
            if balance.address == address:
                return list(balance.coins)
        return []


# --- gov ---


class GovGenesis(ProtoModel):
    params: dict[str, Any] | None = None
    # Pre-v1 gov kept the voting period in its own params block.
    voting_params: dict[str, Any] | None = None

    def with_voting_period(self, seconds: int) -> GovGenesis:
        period = format_duration(seconds)
        if self.params is None and self.voting_params is not None:
            return self.model_copy(
                update={"voting_params": {**self.voting_params, "voting_period": period}}
            )
        return self.model_copy(update={"params": {**(self.params or {}), "voting_period": period}})

    @property
    def voting_period(self) -> str | None:
        if self.params is not None and "voting_period" in self.params:
            return self.params["voting_period"]
        if self.voting_params is not None:
            return self.voting_params.get("voting_period")
        return None


def format_duration(seconds: int) -> str:
    """Proto-JSON duration: ``10`` → ``"10s"``."""
    return f"{seconds}s"


# --- distribution ---


class FeePool(ProtoModel):
    community_pool: list[DecCoin] = Field(default_factory=list)


class DistributionGenesis(ProtoModel):
    params: dict[str, Any] = Field(default_factory=dict)
    fee_pool: FeePool = Field(default_factory=FeePool)


# --- document ---


class GenesisDocument(Mapping[str, Any]):
    """Ordered ``module name -> module state`` mapping with freeze semantics.

    Reads return deep copies so callers can never mutate the document
    behind its back; writes go through :meth:`write`.
    """

    def __init__(self, app_state: Mapping[str, Any] | None = None) -> None:
        self._modules: dict[str, Any] = copy.deepcopy(dict(app_state or {}))
        self._frozen = False

    # --- construction ---

    @classmethod
    def from_json(cls, raw: str | bytes) -> GenesisDocument:
        """Parse a full genesis file (with ``app_state``) or a bare app state."""
        data = json.loads(raw)
        if not isinstance(data, dict):
            msg = "Genesis JSON must be an object"
            raise ValueError(msg)
        app_state = data.get("app_state")
        if isinstance(app_state, dict):
            return cls(app_state)
        return cls(data)

    @classmethod
    def from_file(cls, path: Path) -> GenesisDocument:
        return cls.from_json(path.read_text(encoding="utf-8"))

    # --- Mapping protocol ---

    def __getitem__(self, name: str) -> Any:
        return copy.deepcopy(self._modules[name])

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    # --- typed access ---

    def read(self, name: str, model_cls: type[M]) -> M:
        """Load module *name* into *model_cls*.

        Raises:
            MissingModuleError: If the module has no entry.
        """
        if name not in self._modules:
            raise MissingModuleError([name])
        return model_cls.model_validate(self._modules[name])

    def read_or_default(self, name: str, model_cls: type[M]) -> M:
        if name not in self._modules:
            return model_cls()
        return model_cls.model_validate(self._modules[name])

    def write(self, name: str, state: BaseModel | Mapping[str, Any]) -> None:
        """Serialize *state* into module *name* (keeps its position if present)."""
        if self._frozen:
            msg = f"Genesis is frozen; cannot write module {name!r}"
            raise GenesisFrozenError(msg)
        if isinstance(state, BaseModel):
            self._modules[name] = state.model_dump(mode="json", by_alias=True)
        else:
            self._modules[name] = copy.deepcopy(dict(state))

    def require(self, *names: str) -> None:
        missing = [n for n in names if n not in self._modules]
        if missing:
            raise MissingModuleError(missing)

    # --- lifecycle ---

    def freeze(self) -> GenesisDocument:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> GenesisDocument:
        """Return an unfrozen deep copy."""
        return GenesisDocument(self._modules)

    # --- serialization ---

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._modules)

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self._modules, indent=indent)
