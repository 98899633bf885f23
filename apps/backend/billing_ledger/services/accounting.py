"""Accounting service - journal posting and lifecycle.

``create_journal`` is the posting interface other flows (expenses, invoices,
bank statements) call to record a balanced double-entry transaction.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from billing_ledger.config import settings
from billing_ledger.logger import get_logger, log_exception
from billing_ledger.models import (
    Account,
    ApprovalStatus,
    Journal,
    JournalApprovalWorkflow,
    JournalLine,
    JournalSourceType,
    JournalStatus,
    ReconciliationLink,
)
from billing_ledger.schemas.journal import (
    CreateJournalFromBankStatement,
    JournalDraft,
    JournalLineDraft,
)
from billing_ledger.services.audit import record_audit_event
from billing_ledger.services.errors import (
    JournalCreationFailed,
    JournalLineCreationFailed,
    JournalNotFound,
    JournalRollbackFailed,
    ValidationError,
)

logger = get_logger(__name__)


def validate_journal_balance(lines: Sequence[JournalLineDraft | JournalLine]) -> None:
    """
    Validate that journal lines are balanced (debit = credit).

    Args:
        lines: Journal lines (drafts or persisted) to validate

    Raises:
        ValidationError: If there are fewer than 2 lines, a line is not
            one-sided, or debits and credits don't balance
    """
    if len(lines) < 2:
        raise ValidationError("Journal must have at least 2 lines")

    for line in lines:
        if line.debit < 0 or line.credit < 0:
            raise ValidationError("Journal line amounts cannot be negative")
        if (line.debit > 0) == (line.credit > 0):
            raise ValidationError("Journal line must have exactly one of debit or credit")

    total_debit = sum((line.debit for line in lines), Decimal("0"))
    total_credit = sum((line.credit for line in lines), Decimal("0"))

    if total_debit != total_credit:
        raise ValidationError(f"Journal not balanced: debit={total_debit}, credit={total_credit}")


def format_journal_number(sequence: int) -> str:
    width = settings.journal_number_width
    return f"{settings.journal_number_prefix}{sequence:0{width}d}"


def parse_journal_sequence(journal_number: str) -> int | None:
    """Extract the numeric part of ``JE007`` style numbers."""
    match = re.fullmatch(rf"{re.escape(settings.journal_number_prefix)}(\d+)", journal_number)
    if not match:
        return None
    return int(match.group(1))


async def next_journal_number(db: AsyncSession, user_id: UUID) -> str:
    """Return the number after the user's highest ``{prefix}{digits}`` journal.

    Numbers sharing the prefix but not of that shape (imported or legacy
    numbers) are ignored. Two concurrent callers can read the same value; the
    ``(user_id, journal_number)`` unique constraint makes the loser fail and
    ``create_journal`` retries.
    """
    prefix = settings.journal_number_prefix
    result = await db.execute(
        select(Journal.journal_number)
        .where(Journal.user_id == user_id)
        .where(Journal.journal_number.like(f"{prefix}%"))
    )
    sequences = [
        sequence
        for sequence in map(parse_journal_sequence, result.scalars().all())
        if sequence is not None
    ]
    return format_journal_number(max(sequences, default=0) + 1)


async def _ensure_accounts_owned(db: AsyncSession, user_id: UUID, account_ids: set[UUID]) -> None:
    result = await db.execute(
        select(Account.id).where(Account.user_id == user_id).where(Account.id.in_(account_ids))
    )
    found = set(result.scalars().all())
    missing = account_ids - found
    if missing:
        raise ValidationError(f"Accounts not found: {', '.join(sorted(str(a) for a in missing))}")


async def _insert_journal_header(
    db: AsyncSession, user_id: UUID, draft: JournalDraft, total: Decimal
) -> Journal:
    """Insert the header with the next free number, retrying on number collisions."""
    attempts = settings.journal_number_max_retries
    last_error: SQLAlchemyError | None = None
    for attempt in range(1, attempts + 1):
        journal_number = await next_journal_number(db, user_id)
        journal = Journal(
            user_id=user_id,
            journal_number=journal_number,
            journal_date=draft.journal_date,
            narration=draft.narration,
            total_debit=total,
            total_credit=total,
            status=JournalStatus.DRAFT,
            source_type=draft.source_type,
            source_id=draft.source_id,
        )
        try:
            async with db.begin_nested():
                db.add(journal)
        except IntegrityError as exc:
            logger.warning(
                "Journal number collision, retrying",
                user_id=str(user_id),
                journal_number=journal_number,
                attempt=attempt,
            )
            last_error = exc
            continue
        except SQLAlchemyError as exc:
            raise JournalCreationFailed(f"Failed to create journal: {exc}") from exc
        return journal

    raise JournalCreationFailed(
        f"Failed to create journal: no free journal number after {attempts} attempts"
    ) from last_error


async def _insert_journal_lines(
    db: AsyncSession, journal_id: UUID, lines: Sequence[JournalLineDraft]
) -> None:
    async with db.begin_nested():
        db.add_all(
            JournalLine(
                journal_id=journal_id,
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                line_narration=line.line_narration,
            )
            for line in lines
        )


async def _delete_journal_header(db: AsyncSession, journal_id: UUID) -> None:
    async with db.begin_nested():
        await db.execute(delete(Journal).where(Journal.id == journal_id))


async def create_journal(db: AsyncSession, user_id: UUID, draft: JournalDraft) -> Journal:
    """Post a balanced journal: header, lines, then approval record.

    The line insert is compensated by deleting the header if it fails, so a
    header never survives without its lines unless the delete itself fails,
    in which case ``JournalRollbackFailed`` names the orphan.

    Raises:
        ValidationError: Unbalanced lines or accounts not owned by the user.
        JournalCreationFailed: Header insert failed.
        JournalLineCreationFailed: Line insert failed; the header was removed.
        JournalRollbackFailed: Line insert failed and the header remains.
    """
    validate_journal_balance(draft.lines)
    await _ensure_accounts_owned(db, user_id, {line.account_id for line in draft.lines})

    total = sum((line.debit for line in draft.lines), Decimal("0"))
    journal = await _insert_journal_header(db, user_id, draft, total)
    journal_id = journal.id

    try:
        await _insert_journal_lines(db, journal_id, draft.lines)
    except SQLAlchemyError as exc:
        log_exception(
            logger,
            exc,
            "Journal line insert failed, removing header",
            include_traceback=False,
            user_id=str(user_id),
            journal_id=str(journal_id),
        )
        try:
            await _delete_journal_header(db, journal_id)
        except SQLAlchemyError as rollback_exc:
            log_exception(
                logger,
                rollback_exc,
                "Orphan journal header left without lines - manual cleanup required",
                user_id=str(user_id),
                journal_id=str(journal_id),
                journal_number=journal.journal_number,
            )
            raise JournalRollbackFailed(
                f"Failed to create journal lines: {exc}; rollback of journal {journal_id} also failed: "
                f"{rollback_exc}",
                journal_id=journal_id,
            ) from rollback_exc
        raise JournalLineCreationFailed(f"Failed to create journal lines: {exc}") from exc

    try:
        async with db.begin_nested():
            db.add(
                JournalApprovalWorkflow(
                    journal_id=journal_id,
                    user_id=user_id,
                    status=ApprovalStatus.PENDING,
                )
            )
    except SQLAlchemyError as exc:
        raise JournalCreationFailed(f"Failed to create journal approval workflow: {exc}") from exc

    await record_audit_event(
        db,
        user_id=user_id,
        action="journal.created",
        entity_type="journal",
        entity_id=journal_id,
        details={"journal_number": journal.journal_number, "amount": str(total)},
    )
    logger.info(
        "Journal created",
        user_id=str(user_id),
        journal_id=str(journal_id),
        journal_number=journal.journal_number,
        source_type=draft.source_type.value,
    )
    return journal


def build_bank_statement_lines(data: CreateJournalFromBankStatement) -> list[JournalLineDraft]:
    """Mirror entries: ``amount`` on ``account_id`` and the opposite side on the contra account."""
    narration = data.narration
    if data.is_debit:
        primary = JournalLineDraft(account_id=data.account_id, debit=data.amount, line_narration=narration)
        contra = JournalLineDraft(
            account_id=data.contra_account_id, credit=data.amount, line_narration=narration
        )
    else:
        primary = JournalLineDraft(account_id=data.account_id, credit=data.amount, line_narration=narration)
        contra = JournalLineDraft(
            account_id=data.contra_account_id, debit=data.amount, line_narration=narration
        )
    return [primary, contra]


async def create_journal_from_bank_statement(
    db: AsyncSession, user_id: UUID, data: CreateJournalFromBankStatement
) -> UUID:
    """Post a two-line journal explaining a bank statement line.

    The statement line is not marked matched here; callers chain
    ``manual_match_bank_statement`` for that.
    """
    draft = JournalDraft(
        journal_date=data.journal_date,
        narration=data.narration,
        lines=build_bank_statement_lines(data),
        source_type=JournalSourceType.BANK_STATEMENT,
        source_id=data.bank_statement_id,
    )
    journal = await create_journal(db, user_id, draft)
    return journal.id


async def get_journal(db: AsyncSession, user_id: UUID, journal_id: UUID) -> Journal:
    result = await db.execute(
        select(Journal)
        .where(Journal.id == journal_id)
        .where(Journal.user_id == user_id)
        .options(selectinload(Journal.lines))
    )
    journal = result.scalar_one_or_none()
    if journal is None:
        raise JournalNotFound(f"Journal {journal_id} not found")
    return journal


async def list_journals(
    db: AsyncSession,
    user_id: UUID,
    status: JournalStatus | None = None,
    *,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Journal], int]:
    """List journals newest first. Returns (page, total)."""
    query = select(Journal).where(Journal.user_id == user_id)
    if status is not None:
        query = query.where(Journal.status == status)

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    result = await db.execute(
        query.options(selectinload(Journal.lines))
        .order_by(Journal.journal_date.desc(), Journal.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def post_journal(db: AsyncSession, user_id: UUID, journal_id: UUID) -> Journal:
    """Move a draft journal to posted after re-checking its balance."""
    journal = await get_journal(db, user_id, journal_id)
    if journal.status != JournalStatus.DRAFT:
        raise ValidationError(f"Can only post draft journals, current status: {journal.status.value}")

    validate_journal_balance(journal.lines)

    journal.status = JournalStatus.POSTED
    await db.flush()
    logger.info("Journal posted", user_id=str(user_id), journal_id=str(journal_id))
    return journal


async def void_journal(db: AsyncSession, user_id: UUID, journal_id: UUID, reason: str) -> Journal:
    """Void a journal. Posted journals accept no other change."""
    journal = await get_journal(db, user_id, journal_id)
    if journal.status == JournalStatus.VOID:
        raise ValidationError("Journal is already void")

    linked = await db.execute(
        select(func.count())
        .select_from(ReconciliationLink)
        .where(ReconciliationLink.user_id == user_id)
        .where(ReconciliationLink.journal_id == journal_id)
    )
    if linked.scalar_one():
        raise ValidationError("Cannot void a journal matched to bank statements; unmatch it first")

    journal.status = JournalStatus.VOID
    journal.void_reason = reason
    await db.flush()

    await record_audit_event(
        db,
        user_id=user_id,
        action="journal.voided",
        entity_type="journal",
        entity_id=journal_id,
        details={"reason": reason},
    )
    logger.info("Journal voided", user_id=str(user_id), journal_id=str(journal_id))
    return journal
