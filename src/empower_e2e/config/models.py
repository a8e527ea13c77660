"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, empower-e2e.toml only contains
overrides. The defaults reproduce the reference e2e network: three validators,
``stake`` as bond denom, a 10s governance voting period.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from empower_e2e.domain.coins import parse_coin

# --- empower-e2e.toml sections ---


class ChainConfig(BaseModel):
    """[chain] section."""

    model_config = {"frozen": True}

    binary: str = "empowerd"
    chain_id: str = "empowerchain-e2e"
    bech32_prefix: str = "empower"
    bond_denom: str = "stake"
    default_fee: str = "10stake"
    credit_class_creation_fee: str = "50000stake"
    initial_token_amount: int = 500_000_000
    no_coins_amount: int = 10
    voting_period_seconds: int = 10
    keyring_backend: str = "test"
    # Parent command of add-genesis-account/gentx/collect-gentxs; "" for older binaries.
    genesis_subcommand: str = "genesis"

    @field_validator("default_fee", "credit_class_creation_fee")
    @classmethod
    def _valid_coin(cls, value: str) -> str:
        parse_coin(value)
        return value


class NetworkConfig(BaseModel):
    """[network] section."""

    model_config = {"frozen": True}

    num_validators: int = Field(default=3, ge=1)
    base_port: int = 26600
    port_stride: int = 10
    host: str = "127.0.0.1"
    validator_stake: int = 100_000_000
    validator_tokens: int = 1_000_000_000
    startup_timeout_seconds: float = 60.0
    shutdown_grace_seconds: float = 5.0
    workdir: Path | None = None
    keep_workdir: bool = False


class RetryPolicy(BaseModel):
    """[confirm] section: bounded polling with exponential backoff."""

    model_config = {"frozen": True}

    max_attempts: int = Field(default=30, ge=1)
    initial_delay_seconds: float = Field(default=0.5, ge=0)
    max_delay_seconds: float = Field(default=4.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    timeout_seconds: float = Field(default=60.0, gt=0)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    entry_points: bool = True
