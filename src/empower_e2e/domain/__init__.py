"""Domain layer: ledger types, genesis models, fixtures.

This layer depends only on stdlib, pydantic and the address codecs.
It must never import from services, infrastructure, commands, or config.
"""
