"""SQLAlchemy Core table definitions for the local keyring database."""

from __future__ import annotations

from sqlalchemy import Column, Integer, LargeBinary, MetaData, Table, Text

metadata = MetaData()

keys = Table(
    "keys",
    metadata,
    Column("name", Text, primary_key=True),
    Column("address", Text, nullable=False, unique=True),
    Column("algorithm", Text, nullable=False),
    Column("pubkey", LargeBinary, nullable=False),  # 33-byte compressed
    Column("hd_path", Text),  # NULL for imported keys
    Column("armor", Text, nullable=False),
    Column("created", Text, nullable=False),
)

# Single row holding the passphrase-independent storage version.
keyring_meta = Table(
    "keyring_meta",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("version", Integer, nullable=False),
)
