"""Fixed test actors and ledger fixtures.

Every identity is derived from a literal mnemonic so its address is known
in advance and can be asserted on. Changing a mnemonic here means changing
the matching address too; identity provisioning checks the pair.
"""

from __future__ import annotations

from dataclasses import dataclass

from empower_e2e.domain.plasticcredit import CreditAmount, ProjectStatus

DEFAULT_BIP39_PASSPHRASE = ""
FULL_FUNDRAISER_PATH = "m/44'/118'/0'/0/0"

# --- key names ---

ISSUER_KEY = "issuer"
ISSUER_CREATOR_KEY = "issuerCreator"
APPLICANT_KEY = "applicant"
RANDOM_KEY = "randomKey"
CONTRACT_ADMIN_KEY = "contractAdmin"
NO_COINS_ISSUER_ADMIN_KEY = "nocoins"

VALIDATOR_KEYS = ("node0", "node1", "node2")

# --- addresses ---

ISSUER_ADDRESS = "empower1qnk2n4nlkpw9xfqntladh74w6ujtulwnz7rf8m"
ISSUER_CREATOR_ADDRESS = "empower18hl5c9xn5dze2g50uaw0l2mr02ew57zkk9vga7"
APPLICANT_ADDRESS = "empower1m9l358xunhhwds0568za49mzhvuxx9uxl4sqxn"
RANDOM_ADDRESS = "empower15hxwswcmmkasaar65n3vkmp6skurvtas3xzl7s"
CONTRACT_ADMIN_ADDRESS = "empower1reurz37gn2sk3vgr3fupcultkagzverqczer0l"
NO_COINS_ISSUER_ADMIN_ADDRESS = "empower1xgsaene8aqfknmldemvl5q0mtgcgjv9svupqwu"


@dataclass(frozen=True)
class IdentityFixture:
    """A named test actor: literal mnemonic plus the address it must derive."""

    name: str
    mnemonic: str
    address: str
    hd_path: str = FULL_FUNDRAISER_PATH


FIXTURE_IDENTITIES: tuple[IdentityFixture, ...] = (
    IdentityFixture(
        ISSUER_KEY,
        "angry twist harsh drastic left brass behave host shove marriage fall update "
        "business leg direct reward object ugly security warm tuna model broccoli choice",
        ISSUER_ADDRESS,
    ),
    IdentityFixture(
        ISSUER_CREATOR_KEY,
        "clock post desk civil pottery foster expand merit dash seminar song memory "
        "figure uniform spice circle try happy obvious trash crime hybrid hood cushion",
        ISSUER_CREATOR_ADDRESS,
    ),
    IdentityFixture(
        APPLICANT_KEY,
        "banner spread envelope side kite person disagree path silver will brother under "
        "couch edit food venture squirrel civil budget number acquire point work mass",
        APPLICANT_ADDRESS,
    ),
    IdentityFixture(
        RANDOM_KEY,
        "pony olive still divide actual surge amateur funny marriage lizard radio gift "
        "basket supply sense feature early hazard carry smooth garment cream fury afford",
        RANDOM_ADDRESS,
    ),
    IdentityFixture(
        CONTRACT_ADMIN_KEY,
        "verb vintage acquire turn opera surge coconut resemble pond salt sugar engage "
        "eager girl cram charge shove genre hurry park tone narrow damp novel",
        CONTRACT_ADMIN_ADDRESS,
    ),
    IdentityFixture(
        NO_COINS_ISSUER_ADMIN_KEY,
        "venture strong firm clap primary sample record ahead spin inherit skull daughter "
        "cherry relief estate maid squeeze charge hair produce animal discover margin edit",
        NO_COINS_ISSUER_ADMIN_ADDRESS,
    ),
)

# Funded with the standard token amount.
FUNDED_ADDRESSES: tuple[str, ...] = (
    ISSUER_ADDRESS,
    ISSUER_CREATOR_ADDRESS,
    APPLICANT_ADDRESS,
    RANDOM_ADDRESS,
    CONTRACT_ADMIN_ADDRESS,
)

# Funded with a minimal balance for insufficient-funds scenarios.
UNDERFUNDED_ADDRESS = NO_COINS_ISSUER_ADMIN_ADDRESS


# --- ledger fixtures ---
#
# Ids are offsets: the composer adds the number of entries already in the
# base genesis, so offset 1 is "the first entry this composition adds".


@dataclass(frozen=True)
class PartyFixture:
    offset: int
    name: str
    description: str
    admin: str


@dataclass(frozen=True)
class CreditClassFixture:
    abbreviation: str
    issuer_offset: int
    name: str


@dataclass(frozen=True)
class ProjectFixture:
    offset: int
    applicant_offset: int
    credit_class: str
    name: str
    status: ProjectStatus


@dataclass(frozen=True)
class CreditCollectionFixture:
    denom: str
    project_offset: int
    amount: CreditAmount


ISSUER_FIXTURES: tuple[PartyFixture, ...] = (
    PartyFixture(1, "Empower", "First Issuer", ISSUER_ADDRESS),
    PartyFixture(2, "Test Issuer", "Purely for testing", ISSUER_ADDRESS),
    PartyFixture(
        3, "Test Issuer with no coins", "Purely for testing", NO_COINS_ISSUER_ADMIN_ADDRESS
    ),
)

APPLICANT_FIXTURES: tuple[PartyFixture, ...] = (
    PartyFixture(1, "Plastix Inc.", "Grab that bottle", APPLICANT_ADDRESS),
    PartyFixture(2, "Ocean plastic Inc.", "Grab that net", APPLICANT_ADDRESS),
    PartyFixture(3, "Sea plastic Inc.", "collector", APPLICANT_ADDRESS),
)

CREDIT_CLASS_FIXTURES: tuple[CreditClassFixture, ...] = (
    CreditClassFixture("ETEST", 1, "Empower Plastic"),
    CreditClassFixture("PTEST", 2, "Plastic Credit"),
)

PROJECT_FIXTURES: tuple[ProjectFixture, ...] = (
    ProjectFixture(1, 1, "ETEST", "Approved project", ProjectStatus.APPROVED),
    ProjectFixture(2, 1, "PTEST", "Suspended project", ProjectStatus.SUSPENDED),
    ProjectFixture(3, 1, "ETEST", "New project", ProjectStatus.NEW),
    ProjectFixture(4, 1, "PTEST", "Rejected project", ProjectStatus.REJECTED),
    ProjectFixture(5, 1, "PTEST", "Other New Project", ProjectStatus.NEW),
    ProjectFixture(6, 1, "PTEST", "Another New Project", ProjectStatus.NEW),
    ProjectFixture(7, 1, "PTEST", "Another Rejected Project", ProjectStatus.REJECTED),
    ProjectFixture(8, 1, "PTEST", "Another Suspended Project", ProjectStatus.SUSPENDED),
    ProjectFixture(9, 1, "PTEST", "New Project to update", ProjectStatus.NEW),
    ProjectFixture(10, 1, "ETEST", "Approved project 2", ProjectStatus.APPROVED),
    ProjectFixture(11, 1, "ETEST", "Approved project to suspend", ProjectStatus.APPROVED),
)

CREDIT_COLLECTION_FIXTURES: tuple[CreditCollectionFixture, ...] = (
    CreditCollectionFixture("ETEST/123", 1, CreditAmount(active=1000, retired=200)),
    CreditCollectionFixture("PTEST/00001", 2, CreditAmount(active=5000, retired=0)),
)

# Credit balances for the collections above go to this applicant's admin.
CREDIT_HOLDER_APPLICANT_OFFSET = 1
