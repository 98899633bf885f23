"""SQLAlchemy models package."""

from billing_ledger.models.account import Account, AccountType
from billing_ledger.models.audit import AuditLog
from billing_ledger.models.journal import (
    ApprovalStatus,
    Journal,
    JournalApprovalWorkflow,
    JournalLine,
    JournalSourceType,
    JournalStatus,
)
from billing_ledger.models.reconciliation import MatchType, ReconciliationLink
from billing_ledger.models.statement import BankStatementLine, BankStatementStatus

__all__ = [
    "Account",
    "AccountType",
    "ApprovalStatus",
    "AuditLog",
    "BankStatementLine",
    "BankStatementStatus",
    "Journal",
    "JournalApprovalWorkflow",
    "JournalLine",
    "JournalSourceType",
    "JournalStatus",
    "MatchType",
    "ReconciliationLink",
]
