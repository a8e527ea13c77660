"""Database engine setup for the local keyring.

The keyring lives at ``{node_home}/keyring-e2e/keyring.db``. Private keys are
never stored in the clear: each row holds the key armored under the keyring's
storage passphrase.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine

from empower_e2e.infrastructure.database.schema import keyring_meta, metadata

KEYRING_DIRNAME = "keyring-e2e"
KEYRING_FILENAME = "keyring.db"
SCHEMA_VERSION = 1


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_keyring_db(home: Path) -> Engine:
    """Initialize the keyring database under *home*.

    Idempotent: safe to call on a home that already has a keyring.
    """
    keyring_dir = home / KEYRING_DIRNAME
    keyring_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(keyring_dir / KEYRING_FILENAME)
    metadata.create_all(engine)

    with engine.begin() as conn:
        row = conn.execute(select(keyring_meta.c.version)).first()
        if row is None:
            conn.execute(insert(keyring_meta).values(id=1, version=SCHEMA_VERSION))
    return engine
