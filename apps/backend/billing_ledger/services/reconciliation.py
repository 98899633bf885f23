"""Reconciliation service: auto/manual matching, unmatching and reporting."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from billing_ledger.config import settings
from billing_ledger.logger import async_log_timing, get_logger, log_exception
from billing_ledger.models import (
    BankStatementLine,
    BankStatementStatus,
    Journal,
    JournalStatus,
    MatchType,
    ReconciliationLink,
)
from billing_ledger.schemas.reconciliation import AutoMatchResult, ReconciliationReport
from billing_ledger.services.audit import record_audit_event
from billing_ledger.services.errors import MatchingFailed, ReconciliationCreationFailed
from billing_ledger.services.matching import run_auto_match
from billing_ledger.services.statement_import import get_bank_statement

logger = get_logger(__name__)


async def auto_match_bank_statements(db: AsyncSession, user_id: UUID) -> AutoMatchResult:
    """Run the set-based matcher for one user.

    Raises:
        MatchingFailed: The matcher failed; none of its links or status
            changes are kept.
    """
    async with async_log_timing(
        "auto_match_bank_statements", logger=logger, user_id=str(user_id)
    ) as timing:
        try:
            async with db.begin_nested():
                counts = await run_auto_match(
                    db, user_id, window_days=settings.reconciliation_date_window_days
                )
        except SQLAlchemyError as exc:
            log_exception(logger, exc, "Auto-matching failed", user_id=str(user_id))
            raise MatchingFailed(f"Auto-matching failed: {exc}") from exc

        if counts is None:
            return AutoMatchResult()

        timing.update(matched=counts.matched, partially_matched=counts.partially_matched)

    return AutoMatchResult(
        matched_count=counts.matched,
        partially_matched_count=counts.partially_matched,
    )


async def _get_statement_for_match(
    db: AsyncSession, user_id: UUID, statement_id: UUID
) -> BankStatementLine:
    result = await db.execute(
        select(BankStatementLine)
        .where(BankStatementLine.id == statement_id)
        .where(BankStatementLine.user_id == user_id)
    )
    statement = result.scalar_one_or_none()
    if statement is None:
        raise ReconciliationCreationFailed(
            f"Failed to create reconciliation: bank statement {statement_id} not found"
        )
    return statement


async def _get_journal_for_match(db: AsyncSession, user_id: UUID, journal_id: UUID) -> Journal:
    result = await db.execute(
        select(Journal).where(Journal.id == journal_id).where(Journal.user_id == user_id)
    )
    journal = result.scalar_one_or_none()
    if journal is None:
        raise ReconciliationCreationFailed(
            f"Failed to create reconciliation: journal {journal_id} not found"
        )
    if journal.status == JournalStatus.VOID:
        raise ReconciliationCreationFailed(
            f"Failed to create reconciliation: journal {journal.journal_number} is void"
        )
    return journal


async def manual_match_bank_statement(
    db: AsyncSession, user_id: UUID, statement_id: UUID, journal_id: UUID
) -> None:
    """Link a statement line to a journal chosen by the user and mark it matched.

    The link is written before the status changes, so a failed link write
    leaves the line's status untouched. An auto link on a partially matched
    line is replaced; a line that is already matched must be unmatched first.

    Raises:
        ReconciliationCreationFailed: Unknown line/journal, line already
            matched, or the link write failed.
    """
    statement = await _get_statement_for_match(db, user_id, statement_id)
    if statement.status == BankStatementStatus.MATCHED:
        raise ReconciliationCreationFailed(
            "Failed to create reconciliation: bank statement is already matched"
        )
    journal = await _get_journal_for_match(db, user_id, journal_id)

    await db.refresh(statement, ["link"])
    replaced = statement.link.journal_id if statement.link is not None else None
    try:
        async with db.begin_nested():
            if statement.link is not None:
                statement.link = None
                await db.flush()
            statement.link = ReconciliationLink(
                user_id=user_id,
                journal_id=journal.id,
                match_type=MatchType.MANUAL,
                matched_amount=statement.amount,
            )
    except SQLAlchemyError as exc:
        raise ReconciliationCreationFailed(f"Failed to create reconciliation: {exc}") from exc

    statement.status = BankStatementStatus.MATCHED
    await db.flush()

    await record_audit_event(
        db,
        user_id=user_id,
        action="reconciliation.manual_match",
        entity_type="bank_statement",
        entity_id=statement_id,
        details={
            "journal_id": str(journal.id),
            "replaced_journal_id": str(replaced) if replaced else None,
        },
    )
    logger.info(
        "Bank statement manually matched",
        user_id=str(user_id),
        statement_id=str(statement_id),
        journal_id=str(journal.id),
    )


async def unmatch_bank_statement(db: AsyncSession, user_id: UUID, statement_id: UUID) -> None:
    """Remove a line's link and reset it to unmatched."""
    statement = await get_bank_statement(db, user_id, statement_id)
    await db.refresh(statement, ["link"])
    previous = statement.link.journal_id if statement.link is not None else None

    statement.link = None
    statement.status = BankStatementStatus.UNMATCHED
    await db.flush()

    await record_audit_event(
        db,
        user_id=user_id,
        action="reconciliation.unmatch",
        entity_type="bank_statement",
        entity_id=statement_id,
        details={"journal_id": str(previous) if previous else None},
    )
    logger.info("Bank statement unmatched", user_id=str(user_id), statement_id=str(statement_id))


def reconciliation_percentage(reconciled: int, total: int) -> int:
    """Share of reconciled lines, rounded half-up to a whole percent."""
    if total <= 0:
        return 0
    percent = (Decimal(reconciled) * 100 / Decimal(total)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return max(0, min(100, int(percent)))


async def get_reconciliation_report(db: AsyncSession, user_id: UUID) -> ReconciliationReport:
    """Summarize reconciliation progress for a user."""
    status_result = await db.execute(
        select(BankStatementLine.status, func.count())
        .where(BankStatementLine.user_id == user_id)
        .group_by(BankStatementLine.status)
    )
    counts = {status: count for status, count in status_result.all()}

    journal_result = await db.execute(
        select(func.count()).select_from(Journal).where(Journal.user_id == user_id)
    )
    total_journals = journal_result.scalar() or 0

    matched = counts.get(BankStatementStatus.MATCHED, 0)
    partially_matched = counts.get(BankStatementStatus.PARTIALLY_MATCHED, 0)
    unmatched = counts.get(BankStatementStatus.UNMATCHED, 0)
    total = matched + partially_matched + unmatched

    return ReconciliationReport(
        total_bank_statements=total,
        total_journals=total_journals,
        matched_count=matched,
        unmatched_count=unmatched,
        partially_matched_count=partially_matched,
        reconciliation_percentage=reconciliation_percentage(matched + partially_matched, total),
    )
