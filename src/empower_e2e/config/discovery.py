"""Locating ``empower-e2e.toml``.

``EMPOWER_E2E_CONFIG`` names the file outright. Without it the search climbs
from the starting directory toward the filesystem root and stops after the
first directory holding a ``.git`` entry, so a suite only sees configs from
its own checkout.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "empower-e2e.toml"
CONFIG_ENV_VAR = "EMPOWER_E2E_CONFIG"


def _search_dirs(start: Path) -> Iterator[Path]:
    here = start.resolve()
    for directory in (here, *here.parents):
        yield directory
        if (directory / ".git").exists():
            return


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), if any.

    An ``EMPOWER_E2E_CONFIG`` path that does not exist yields ``None`` rather
    than falling back to the directory search.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        return path if path.is_file() else None

    for directory in _search_dirs(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
