"""Domain models and calculations for the tax-lot engine.

This package holds the in-memory (Pydantic) event, lot and realization models,
the FIFO lot ledger and the fiscal-year tax calculator. They are independent
from persistence and import code so that business logic and testing can evolve
without DB or I/O coupling.
"""

__all__ = [
    "history",
    "ledger",
    "lot_ledger",
    "reconciliation",
    "tax_calculator",
]
