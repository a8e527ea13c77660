"""Plugin discovery, loading and hook dispatch."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

import pluggy

from empower_e2e.plugins.hookspecs import PROJECT_NAME, E2EHookSpec

if TYPE_CHECKING:
    from empower_e2e.domain.genesis import GenesisDocument
    from empower_e2e.services.network import NetworkHandle

ENTRY_POINT_GROUP = "empower_e2e.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(E2EHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load plugins from the ``empower_e2e.plugins`` entry point group.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. from a conftest)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def modify_genesis(self, genesis: GenesisDocument) -> None:
        """Run ``e2e_modify_genesis``. Exceptions propagate."""
        self._pm.hook.e2e_modify_genesis(genesis=genesis)

    def network_started(self, network: NetworkHandle) -> list[str]:
        return self._notify("e2e_network_started", network)

    def network_stopping(self, network: NetworkHandle) -> list[str]:
        return self._notify("e2e_network_stopping", network)

    def _notify(self, hook_name: str, network: NetworkHandle) -> list[str]:
        """Dispatch a notification hook; failures become warnings."""
        warnings: list[str] = []
        try:
            getattr(self._pm.hook, hook_name)(network=network)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Plugin hook {hook_name} failed")
        return warnings

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
