"""Domain exceptions for reconciliation and ledger posting.

Messages are prefixed with the failing operation so they can be surfaced to
callers verbatim, e.g. ``"Failed to fetch bank statements: <detail>"``.
"""

from uuid import UUID


class LedgerError(Exception):
    """Base exception for reconciliation and ledger errors."""

    pass


class ValidationError(LedgerError):
    """Malformed input; the caller can fix it and retry."""

    pass


class InvalidCSVFormat(ValidationError):
    """Structural CSV failure; no partial results are returned."""

    pass


class StatementNotFound(LedgerError):
    """Statement line does not exist for the requesting user."""

    pass


class StatementQueryFailed(LedgerError):
    """Reading statement lines from the store failed."""

    pass


class MatchingFailed(LedgerError):
    """The set-based auto-matching routine failed."""

    pass


class ReconciliationCreationFailed(LedgerError):
    """Writing a reconciliation link failed; statement status is unchanged."""

    pass


class JournalNotFound(LedgerError):
    """Journal does not exist for the requesting user."""

    pass


class JournalCreationFailed(LedgerError):
    """Journal header insert failed."""

    pass


class JournalLineCreationFailed(LedgerError):
    """Journal line insert failed; the header was removed."""

    pass


class JournalRollbackFailed(JournalLineCreationFailed):
    """Line insert failed and the header could not be removed.

    The orphan header (no lines) must be cleaned up by an operator.
    """

    def __init__(self, message: str, *, journal_id: UUID) -> None:
        super().__init__(message)
        self.journal_id = journal_id
