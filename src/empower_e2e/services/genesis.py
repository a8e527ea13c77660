"""GenesisComposer: seeds a base genesis with the e2e ledger fixtures.

Composition is additive and repeatable. Running it twice over the same
document adds a second batch of issuers, applicants and projects (with
fresh ids) while collections, balances, classes and accounts that already
exist are merged instead of duplicated.

Steps:
  1. Read the plastic credit state (chain default if the module is absent).
  2. Append issuers, applicants and projects, ids offset past existing ones;
     add credit classes unless their abbreviation already exists.
  3. Merge credit collections by denom and credit balances by (owner, denom).
  4. Recompute id counters.
  5. Fund the fixed test accounts.
  6. Set fees, the governance voting period and the community pool.
  7. Write every touched module back.
  8. Validate the resulting ledger.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from empower_e2e.config.models import ChainConfig
from empower_e2e.domain.addresses import encode_address, module_address
from empower_e2e.domain.coins import Coin, DecCoin, add_dec_coins, parse_coin
from empower_e2e.domain.fixtures import (
    APPLICANT_FIXTURES,
    CREDIT_CLASS_FIXTURES,
    CREDIT_COLLECTION_FIXTURES,
    CREDIT_HOLDER_APPLICANT_OFFSET,
    FUNDED_ADDRESSES,
    ISSUER_FIXTURES,
    PROJECT_FIXTURES,
    UNDERFUNDED_ADDRESS,
)
from empower_e2e.domain.genesis import (
    AUTH,
    BANK,
    DISTRIBUTION,
    GOV,
    AuthGenesis,
    BankGenesis,
    DistributionGenesis,
    GenesisDocument,
    GovGenesis,
)
from empower_e2e.domain.plasticcredit import (
    MODULE_NAME as PLASTICCREDIT,
)
from empower_e2e.domain.plasticcredit import (
    Applicant,
    CreditAmount,
    CreditBalance,
    CreditClass,
    CreditCollection,
    Issuer,
    PlasticcreditGenesis,
    Project,
    recompute_id_counters,
    validate_ledger,
)
from empower_e2e.errors import GenesisIntegrityError

logger = structlog.get_logger(__name__)

REQUIRED_MODULES = (AUTH, BANK, GOV)


@dataclass(frozen=True)
class _Offsets:
    """Highest existing id per collection; fixture offsets are added to these."""

    issuer: int
    applicant: int
    project: int


class _LedgerDraft:
    """Mutable working copy of the plastic credit state.

    Keyed collections are held as dicts on their uniqueness key so merging
    is a lookup; insertion order is preserved for serialization.
    """

    def __init__(self, state: PlasticcreditGenesis) -> None:
        self._state = state
        self.issuers: list[Issuer] = list(state.issuers)
        self.applicants: list[Applicant] = list(state.applicants)
        self.projects: list[Project] = list(state.projects)
        self.credit_classes: dict[str, CreditClass] = {
            c.abbreviation: c for c in state.credit_classes
        }
        self.collections: dict[str, CreditCollection] = {
            c.denom: c for c in state.credit_collections
        }
        self.balances: dict[tuple[str, str], CreditBalance] = {
            (b.owner, b.denom): b for b in state.credit_balances
        }

    def offsets(self) -> _Offsets:
        return _Offsets(
            issuer=max((i.id for i in self.issuers), default=0),
            applicant=max((a.id for a in self.applicants), default=0),
            project=max((p.id for p in self.projects), default=0),
        )

    def add_credit_class(self, credit_class: CreditClass) -> None:
        self.credit_classes.setdefault(credit_class.abbreviation, credit_class)

    def add_to_collection(self, denom: str, project_id: int, amount: CreditAmount) -> None:
        existing = self.collections.get(denom)
        if existing is None:
            self.collections[denom] = CreditCollection(
                denom=denom, project_id=project_id, total_amount=amount
            )
        else:
            self.collections[denom] = existing.model_copy(
                update={"total_amount": existing.total_amount + amount}
            )

    def add_to_balance(self, owner: str, denom: str, amount: CreditAmount) -> None:
        key = (owner, denom)
        existing = self.balances.get(key)
        if existing is None:
            self.balances[key] = CreditBalance(owner=owner, denom=denom, balance=amount)
        else:
            self.balances[key] = existing.model_copy(
                update={"balance": existing.balance + amount}
            )

    def build(self) -> PlasticcreditGenesis:
        state = self._state.model_copy(
            update={
                "issuers": self.issuers,
                "applicants": self.applicants,
                "projects": self.projects,
                "credit_classes": list(self.credit_classes.values()),
                "credit_collections": list(self.collections.values()),
                "credit_balances": list(self.balances.values()),
            }
        )
        return state.model_copy(update={"id_counters": recompute_id_counters(state)})


def default_plasticcredit_genesis(prefix: str) -> PlasticcreditGenesis:
    """Chain default: empty ledger, governance as issuer creator."""
    state = PlasticcreditGenesis()
    gov_address = encode_address(prefix, module_address(GOV))
    return state.model_copy(
        update={"params": state.params.model_copy(update={"issuer_creator": gov_address})}
    )


def seed_ledger(state: PlasticcreditGenesis) -> PlasticcreditGenesis:
    """Steps 2-4: add the ledger fixtures to *state* and recompute counters."""
    draft = _LedgerDraft(state)
    base = draft.offsets()

    draft.issuers.extend(
        Issuer(id=base.issuer + f.offset, name=f.name, description=f.description, admin=f.admin)
        for f in ISSUER_FIXTURES
    )
    draft.applicants.extend(
        Applicant(
            id=base.applicant + f.offset, name=f.name, description=f.description, admin=f.admin
        )
        for f in APPLICANT_FIXTURES
    )
    for cc in CREDIT_CLASS_FIXTURES:
        draft.add_credit_class(
            CreditClass(
                abbreviation=cc.abbreviation,
                issuer_id=base.issuer + cc.issuer_offset,
                name=cc.name,
            )
        )
    draft.projects.extend(
        Project(
            id=base.project + p.offset,
            applicant_id=base.applicant + p.applicant_offset,
            credit_class_abbreviation=p.credit_class,
            name=p.name,
            status=p.status,
        )
        for p in PROJECT_FIXTURES
    )

    holder_id = base.applicant + CREDIT_HOLDER_APPLICANT_OFFSET
    holder = next(a.admin for a in draft.applicants if a.id == holder_id)
    for collection in CREDIT_COLLECTION_FIXTURES:
        draft.add_to_collection(
            collection.denom, base.project + collection.project_offset, collection.amount
        )
        draft.add_to_balance(holder, collection.denom, collection.amount)

    return draft.build()


def compose_genesis(
    base: GenesisDocument,
    *,
    bond_denom: str,
    initial_token_amount: int,
    credit_class_creation_fee: Coin,
    voting_period_seconds: int,
    prefix: str = "empower",
    no_coins_amount: int = 10,
) -> GenesisDocument:
    """Return a new document: *base* seeded with the e2e fixtures.

    *base* itself is not modified.

    Raises:
        MissingModuleError: ``auth``, ``bank`` or ``gov`` has no entry.
        GenesisIntegrityError: The seeded ledger is inconsistent.
    """
    base.require(*REQUIRED_MODULES)
    genesis = base.copy()

    if PLASTICCREDIT in genesis:
        ledger = genesis.read(PLASTICCREDIT, PlasticcreditGenesis)
    else:
        ledger = default_plasticcredit_genesis(prefix)
    ledger = seed_ledger(ledger)
    ledger = ledger.model_copy(
        update={
            "params": ledger.params.model_copy(
                update={"credit_class_creation_fee": credit_class_creation_fee}
            )
        }
    )

    auth = genesis.read(AUTH, AuthGenesis)
    bank = genesis.read(BANK, BankGenesis)
    funded = Coin(denom=bond_denom, amount=initial_token_amount)
    for address in FUNDED_ADDRESSES:
        auth = auth.with_base_account(address)
        bank = bank.credit(address, [funded])
    auth = auth.with_base_account(UNDERFUNDED_ADDRESS)
    bank = bank.credit(UNDERFUNDED_ADDRESS, [Coin(denom=bond_denom, amount=no_coins_amount)])

    gov = genesis.read(GOV, GovGenesis).with_voting_period(voting_period_seconds)

    distribution = genesis.read_or_default(DISTRIBUTION, DistributionGenesis)
    pool = add_dec_coins(
        distribution.fee_pool.community_pool, [DecCoin.from_coin(credit_class_creation_fee)]
    )
    distribution = distribution.model_copy(
        update={"fee_pool": distribution.fee_pool.model_copy(update={"community_pool": pool})}
    )
    # Community pool coins must be backed by the distribution module's balance.
    bank = bank.credit(
        encode_address(prefix, module_address(DISTRIBUTION)), [credit_class_creation_fee]
    )

    genesis.write(PLASTICCREDIT, ledger)
    genesis.write(AUTH, auth)
    genesis.write(BANK, bank)
    genesis.write(GOV, gov)
    genesis.write(DISTRIBUTION, distribution)

    verify_ledger(genesis)

    logger.info(
        "genesis_composed",
        issuers=len(ledger.issuers),
        applicants=len(ledger.applicants),
        projects=len(ledger.projects),
        collections=len(ledger.credit_collections),
    )
    return genesis


def verify_ledger(genesis: GenesisDocument) -> None:
    """Raise ``GenesisIntegrityError`` if the plasticcredit ledger is inconsistent."""
    issues = validate_ledger(genesis.read(PLASTICCREDIT, PlasticcreditGenesis))
    if issues:
        raise GenesisIntegrityError(issues)


class GenesisComposer:
    """``compose_genesis`` with its parameters taken from the ``[chain]`` config."""

    def __init__(self, chain: ChainConfig) -> None:
        self._chain = chain

    def compose(self, base: GenesisDocument) -> GenesisDocument:
        chain = self._chain
        return compose_genesis(
            base,
            bond_denom=chain.bond_denom,
            initial_token_amount=chain.initial_token_amount,
            credit_class_creation_fee=parse_coin(chain.credit_class_creation_fee),
            voting_period_seconds=chain.voting_period_seconds,
            prefix=chain.bech32_prefix,
            no_coins_amount=chain.no_coins_amount,
        )
