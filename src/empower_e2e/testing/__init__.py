"""Suite-level entry points: the E2E context and its pytest plugin."""

from empower_e2e.testing.context import E2EContext

__all__ = ["E2EContext"]
