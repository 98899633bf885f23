"""Services package."""

from billing_ledger.services.accounting import (
    create_journal,
    create_journal_from_bank_statement,
    get_journal,
    list_journals,
    next_journal_number,
    post_journal,
    validate_journal_balance,
    void_journal,
)
from billing_ledger.services.audit import SideEffectResult, record_audit_event
from billing_ledger.services.csv_parsing import parse_bank_statement_csv
from billing_ledger.services.errors import (
    InvalidCSVFormat,
    JournalCreationFailed,
    JournalLineCreationFailed,
    JournalNotFound,
    JournalRollbackFailed,
    LedgerError,
    MatchingFailed,
    ReconciliationCreationFailed,
    StatementNotFound,
    StatementQueryFailed,
    ValidationError,
)
from billing_ledger.services.reconciliation import (
    auto_match_bank_statements,
    get_reconciliation_report,
    manual_match_bank_statement,
    unmatch_bank_statement,
)
from billing_ledger.services.reporting import get_receipts_and_payments, get_trial_balance
from billing_ledger.services.statement_import import (
    delete_bank_statement,
    get_bank_statement,
    get_bank_statements,
    import_bank_statement_csv,
    import_bank_statements,
)

__all__ = [
    "InvalidCSVFormat",
    "JournalCreationFailed",
    "JournalLineCreationFailed",
    "JournalNotFound",
    "JournalRollbackFailed",
    "LedgerError",
    "MatchingFailed",
    "ReconciliationCreationFailed",
    "SideEffectResult",
    "StatementNotFound",
    "StatementQueryFailed",
    "ValidationError",
    "auto_match_bank_statements",
    "create_journal",
    "create_journal_from_bank_statement",
    "delete_bank_statement",
    "get_bank_statement",
    "get_bank_statements",
    "get_journal",
    "get_receipts_and_payments",
    "get_reconciliation_report",
    "get_trial_balance",
    "import_bank_statement_csv",
    "import_bank_statements",
    "list_journals",
    "manual_match_bank_statement",
    "next_journal_number",
    "parse_bank_statement_csv",
    "post_journal",
    "record_audit_event",
    "unmatch_bank_statement",
    "validate_journal_balance",
    "void_journal",
]
