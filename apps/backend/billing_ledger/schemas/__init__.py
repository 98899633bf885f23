"""Pydantic schemas package."""

from billing_ledger.schemas.base import BaseResponse, ListResponse
from billing_ledger.schemas.journal import (
    CreateJournalFromBankStatement,
    JournalCreatedResponse,
    JournalDraft,
    JournalLineDraft,
    JournalLineResponse,
    JournalListResponse,
    JournalResponse,
    VoidJournalRequest,
)
from billing_ledger.schemas.reconciliation import (
    AutoMatchResult,
    ManualMatchRequest,
    ReconciliationReport,
)
from billing_ledger.schemas.reports import (
    ReceiptsPaymentsItem,
    ReceiptsPaymentsReport,
    TrialBalanceReport,
    TrialBalanceRow,
)
from billing_ledger.schemas.statement import (
    BankStatementImportData,
    BankStatementImportRequest,
    BankStatementImportResult,
    BankStatementListResponse,
    BankStatementResponse,
)

__all__ = [
    "AutoMatchResult",
    "BankStatementImportData",
    "BankStatementImportRequest",
    "BankStatementImportResult",
    "BankStatementListResponse",
    "BankStatementResponse",
    "BaseResponse",
    "CreateJournalFromBankStatement",
    "JournalCreatedResponse",
    "JournalDraft",
    "JournalLineDraft",
    "JournalLineResponse",
    "JournalListResponse",
    "JournalResponse",
    "ListResponse",
    "ManualMatchRequest",
    "ReceiptsPaymentsItem",
    "ReceiptsPaymentsReport",
    "ReconciliationReport",
    "TrialBalanceReport",
    "TrialBalanceRow",
    "VoidJournalRequest",
]
