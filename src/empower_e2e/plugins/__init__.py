"""Extension layer: plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugins may raise from ``e2e_modify_genesis`` (a broken genesis
must stop the suite); notification hooks log failures and carry on.
"""

from empower_e2e.plugins.hookspecs import hookimpl
from empower_e2e.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
