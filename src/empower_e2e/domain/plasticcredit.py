"""Plastic credit ledger state: the business-domain genesis sub-document.

Collections and their uniqueness keys:

- issuers, applicants, projects: ``id`` (separate id spaces)
- credit_classes: ``abbreviation``
- credit_collections: ``denom`` (``<ABBR>/<serial>``)
- credit_balances: ``(owner, denom)``

INVARIANT: ``id_counters.next_X`` is ``max(ids of X) + 1``. Counters are
always recomputed from the collections, never incremented on their own.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from enum import StrEnum

from pydantic import Field

from empower_e2e.domain.coins import Coin
from empower_e2e.domain.types import ProtoModel, Uint64

MODULE_NAME = "plasticcredit"


class ProjectStatus(StrEnum):
    NEW = "NEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class CreditAmount(ProtoModel):
    active: Uint64 = 0
    retired: Uint64 = 0

    def __add__(self, other: CreditAmount) -> CreditAmount:
        return CreditAmount(active=self.active + other.active, retired=self.retired + other.retired)


class Issuer(ProtoModel):
    id: Uint64
    name: str
    description: str = ""
    admin: str


class Applicant(ProtoModel):
    id: Uint64
    name: str
    description: str = ""
    admin: str


class CreditClass(ProtoModel):
    abbreviation: str
    issuer_id: Uint64
    name: str


class Project(ProtoModel):
    id: Uint64
    applicant_id: Uint64
    credit_class_abbreviation: str
    name: str
    status: ProjectStatus = ProjectStatus.NEW


class CreditCollection(ProtoModel):
    denom: str
    project_id: Uint64
    total_amount: CreditAmount = Field(default_factory=CreditAmount)

    @property
    def abbreviation(self) -> str:
        return self.denom.split("/", 1)[0]


class CreditBalance(ProtoModel):
    owner: str
    denom: str
    balance: CreditAmount = Field(default_factory=CreditAmount)


class IDCounters(ProtoModel):
    next_issuer_id: Uint64 = 1
    next_applicant_id: Uint64 = 1
    next_project_id: Uint64 = 1


class Params(ProtoModel):
    issuer_creator: str = ""
    credit_class_creation_fee: Coin | None = None


class PlasticcreditGenesis(ProtoModel):
    params: Params = Field(default_factory=Params)
    id_counters: IDCounters = Field(default_factory=IDCounters)
    issuers: list[Issuer] = Field(default_factory=list)
    applicants: list[Applicant] = Field(default_factory=list)
    credit_classes: list[CreditClass] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    credit_collections: list[CreditCollection] = Field(default_factory=list)
    credit_balances: list[CreditBalance] = Field(default_factory=list)


def next_id(ids: Iterable[int]) -> int:
    """Return ``max(ids) + 1``, or 1 for an empty collection."""
    return max(ids, default=0) + 1


def recompute_id_counters(state: PlasticcreditGenesis) -> IDCounters:
    """Derive every id counter from the current collections."""
    return IDCounters(
        next_issuer_id=next_id(i.id for i in state.issuers),
        next_applicant_id=next_id(a.id for a in state.applicants),
        next_project_id=next_id(p.id for p in state.projects),
    )


def _duplicates(keys: Iterable[object]) -> list[object]:
    return [key for key, count in Counter(keys).items() if count > 1]


def validate_ledger(state: PlasticcreditGenesis) -> list[str]:
    """Check uniqueness keys, cross references, and id counters.

    Returns a list of human-readable issues; an empty list means the
    ledger is internally consistent.
    """
    issues: list[str] = []

    for label, keys in (
        ("issuer id", [i.id for i in state.issuers]),
        ("applicant id", [a.id for a in state.applicants]),
        ("project id", [p.id for p in state.projects]),
        ("credit class abbreviation", [c.abbreviation for c in state.credit_classes]),
        ("credit collection denom", [c.denom for c in state.credit_collections]),
        ("credit balance (owner, denom)", [(b.owner, b.denom) for b in state.credit_balances]),
    ):
        for dup in _duplicates(keys):
            issues.append(f"duplicate {label}: {dup!r}")

    issuer_ids = {i.id for i in state.issuers}
    applicant_ids = {a.id for a in state.applicants}
    project_ids = {p.id for p in state.projects}
    class_abbrs = {c.abbreviation for c in state.credit_classes}

    for cc in state.credit_classes:
        if cc.issuer_id not in issuer_ids:
            issues.append(
                f"credit class {cc.abbreviation} references unknown issuer {cc.issuer_id}"
            )
    for project in state.projects:
        if project.applicant_id not in applicant_ids:
            issues.append(
                f"project {project.id} references unknown applicant {project.applicant_id}"
            )
        if project.credit_class_abbreviation not in class_abbrs:
            issues.append(
                f"project {project.id} references unknown credit class "
                f"{project.credit_class_abbreviation}"
            )
    for collection in state.credit_collections:
        if collection.project_id not in project_ids:
            issues.append(
                f"credit collection {collection.denom} references unknown project "
                f"{collection.project_id}"
            )
    collection_denoms = {c.denom for c in state.credit_collections}
    for balance in state.credit_balances:
        if balance.denom not in collection_denoms:
            issues.append(
                f"credit balance of {balance.owner} references unknown denom {balance.denom}"
            )

    expected = recompute_id_counters(state)
    for name in IDCounters.model_fields:
        have, want = getattr(state.id_counters, name), getattr(expected, name)
        if have != want:
            issues.append(f"id counter {name} is {have}, expected {want}")

    return issues
