"""Service layer: identity, genesis composition, network, response resolution.

Services may import from domain, messages and infrastructure layers.
They must never import from commands or output.
"""
