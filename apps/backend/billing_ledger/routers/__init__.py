"""API routers package."""

from billing_ledger.routers import journal, reconciliation, reports, statements

__all__ = [
    "journal",
    "reconciliation",
    "reports",
    "statements",
]
