"""Infrastructure layer: keyrings, chain binary, RPC, process launcher.

This layer depends on stdlib and third-party libs (SQLAlchemy, httpx,
eth-account, cryptography). It may import from domain and config.
It must never import from services, commands, or output.
"""
