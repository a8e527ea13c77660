"""empower-e2e: end-to-end test harness for the plastic credit ledger network."""

__version__ = "0.4.0"
