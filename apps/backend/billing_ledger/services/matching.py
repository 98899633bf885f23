"""Set-based auto-matching of statement lines to journals.

One call pairs every unmatched statement line of a user with at most one
journal and returns aggregate counts. Pairing rules:

- amount: journal ``total_debit`` equals the line's non-zero side exactly
- date: ``journal_date`` within ``window_days`` of ``transaction_date``
- a single candidate links as ``matched``; several candidates link the
  nearest-dated one (then lowest journal number) as ``partially_matched``
- void journals and journals already linked to a line are never candidates
- a journal is claimed by at most one line per run
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_ledger.logger import get_logger
from billing_ledger.models import (
    BankStatementLine,
    BankStatementStatus,
    Journal,
    JournalStatus,
    MatchType,
    ReconciliationLink,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatchCounts:
    matched: int = 0
    partially_matched: int = 0


def journal_number_sort_key(journal: Journal) -> tuple[int, str]:
    """Numeric ordering for zero-padded numbers (JE999 before JE1000)."""
    return (len(journal.journal_number), journal.journal_number)


def rank_candidates(line: BankStatementLine, candidates: list[Journal]) -> list[Journal]:
    """Order candidates by date distance, then journal number."""
    return sorted(
        candidates,
        key=lambda j: (
            abs((j.journal_date - line.transaction_date).days),
            journal_number_sort_key(j),
        ),
    )


async def run_auto_match(db: AsyncSession, user_id: UUID, window_days: int) -> MatchCounts:
    """Pair unmatched lines with journals and write AUTO links. Flushes, never commits."""
    lines_result = await db.execute(
        select(BankStatementLine)
        .where(BankStatementLine.user_id == user_id)
        .where(BankStatementLine.status == BankStatementStatus.UNMATCHED)
        .order_by(BankStatementLine.transaction_date, BankStatementLine.transaction_id)
    )
    lines = [line for line in lines_result.scalars().all() if line.amount > 0]
    if not lines:
        return MatchCounts()

    window = timedelta(days=window_days)
    earliest = min(line.transaction_date for line in lines) - window
    latest = max(line.transaction_date for line in lines) + window

    linked_journals = select(ReconciliationLink.journal_id).where(
        ReconciliationLink.user_id == user_id
    )
    journals_result = await db.execute(
        select(Journal)
        .where(Journal.user_id == user_id)
        .where(Journal.status != JournalStatus.VOID)
        .where(Journal.journal_date.between(earliest, latest))
        .where(Journal.id.not_in(linked_journals))
    )
    by_amount: dict[Decimal, list[Journal]] = defaultdict(list)
    for journal in journals_result.scalars().all():
        by_amount[journal.total_debit].append(journal)

    claimed: set[UUID] = set()
    matched = 0
    partially_matched = 0
    for line in lines:
        candidates = [
            journal
            for journal in by_amount.get(line.amount, [])
            if journal.id not in claimed
            and abs(journal.journal_date - line.transaction_date) <= window
        ]
        if not candidates:
            continue

        best = rank_candidates(line, candidates)[0]
        claimed.add(best.id)
        db.add(
            ReconciliationLink(
                user_id=user_id,
                bank_statement_id=line.id,
                journal_id=best.id,
                match_type=MatchType.AUTO,
                matched_amount=line.amount,
            )
        )
        if len(candidates) == 1:
            line.status = BankStatementStatus.MATCHED
            matched += 1
        else:
            line.status = BankStatementStatus.PARTIALLY_MATCHED
            partially_matched += 1

    await db.flush()
    logger.info(
        "Auto-match pass complete",
        user_id=str(user_id),
        candidates=len(lines),
        matched=matched,
        partially_matched=partially_matched,
    )
    return MatchCounts(matched=matched, partially_matched=partially_matched)
