"""Unified settings: CLI flags, env vars and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click, or test overrides
  2. Env vars: ``EMPOWER_E2E_*`` prefix, ``__`` for nested sections
  3. TOML file: ``empower-e2e.toml`` discovered via walk-up
  4. Code defaults: baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from empower_e2e.config.discovery import find_config
from empower_e2e.config.models import ChainConfig, NetworkConfig, PluginsConfig, RetryPolicy


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from an ``empower-e2e.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class HarnessSettings(BaseSettings):
    """Unified settings for the harness and its CLI.

    Frozen after construction. The CLI stores it in ``click.Context.obj``;
    the pytest plugin builds one per session.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "EMPOWER_E2E_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    chain: ChainConfig = Field(default_factory=ChainConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    confirm: RetryPolicy = Field(default_factory=RetryPolicy)
    liveness: RetryPolicy = Field(
        default_factory=lambda: RetryPolicy(
            max_attempts=120, initial_delay_seconds=0.5, max_delay_seconds=1.0
        )
    )
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @property
    def startup_policy(self) -> RetryPolicy:
        """Liveness polling bounded by ``[network] startup_timeout_seconds``."""
        return self.liveness.model_copy(
            update={"timeout_seconds": self.network.startup_timeout_seconds}
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **overrides: Any,
    ) -> HarnessSettings:
        """Construct settings from a CLI invocation or a test session.

        Discovers ``empower-e2e.toml`` via walk-up (or explicit *config_path*),
        resolves *project_root* from the config file's parent directory,
        and merges *overrides* as highest-priority values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                project_root=resolved_root,
                config_path=toml_path,
                **overrides,
            )
        finally:
            _tls.toml_path = None
