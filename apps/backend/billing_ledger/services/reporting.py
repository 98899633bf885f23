"""Ledger reports: trial balance and receipts & payments."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_ledger.logger import get_logger
from billing_ledger.models import (
    Account,
    BankStatementLine,
    Journal,
    JournalLine,
    JournalStatus,
)
from billing_ledger.schemas.reports import (
    ReceiptsPaymentsItem,
    ReceiptsPaymentsReport,
    TrialBalanceReport,
    TrialBalanceRow,
)
from billing_ledger.services.errors import ValidationError

logger = get_logger(__name__)

ZERO = Decimal("0")


def _quantize_money(amount: Decimal | int | None) -> Decimal:
    if amount is None:
        return Decimal("0.00")
    return Decimal(amount).quantize(Decimal("0.01"))


async def get_trial_balance(
    db: AsyncSession, user_id: UUID, as_of: date | None = None
) -> TrialBalanceReport:
    """Per-account debit/credit totals across posted journals."""
    query = (
        select(
            Account.id,
            Account.code,
            Account.name,
            Account.type,
            func.coalesce(func.sum(JournalLine.debit), 0),
            func.coalesce(func.sum(JournalLine.credit), 0),
        )
        .join(JournalLine, JournalLine.account_id == Account.id)
        .join(Journal, Journal.id == JournalLine.journal_id)
        .where(Account.user_id == user_id)
        .where(Journal.user_id == user_id)
        .where(Journal.status == JournalStatus.POSTED)
        .group_by(Account.id, Account.code, Account.name, Account.type)
        .order_by(Account.code)
    )
    if as_of is not None:
        query = query.where(Journal.journal_date <= as_of)

    result = await db.execute(query)
    rows = [
        TrialBalanceRow(
            account_id=account_id,
            account_code=code,
            account_name=name,
            account_type=account_type,
            debit=_quantize_money(debit),
            credit=_quantize_money(credit),
        )
        for account_id, code, name, account_type, debit, credit in result.all()
    ]

    total_debit = _quantize_money(sum((row.debit for row in rows), ZERO))
    total_credit = _quantize_money(sum((row.credit for row in rows), ZERO))
    if total_debit != total_credit:
        logger.warning(
            "Trial balance out of balance",
            user_id=str(user_id),
            total_debit=str(total_debit),
            total_credit=str(total_credit),
        )

    return TrialBalanceReport(
        as_of=as_of,
        rows=rows,
        total_debit=total_debit,
        total_credit=total_credit,
        is_balanced=total_debit == total_credit,
    )


async def _opening_balance(db: AsyncSession, user_id: UUID, start_date: date) -> Decimal:
    """Balance brought forward into ``start_date``.

    Uses the bank's running balance on the last earlier line when the export
    carried one; otherwise nets all earlier lines.
    """
    last_result = await db.execute(
        select(BankStatementLine.balance)
        .where(BankStatementLine.user_id == user_id)
        .where(BankStatementLine.transaction_date < start_date)
        .order_by(
            BankStatementLine.transaction_date.desc(),
            BankStatementLine.created_at.desc(),
        )
        .limit(1)
    )
    last_balance = last_result.scalar_one_or_none()
    if last_balance is not None:
        return _quantize_money(last_balance)

    net_result = await db.execute(
        select(
            func.coalesce(func.sum(BankStatementLine.credit), 0)
            - func.coalesce(func.sum(BankStatementLine.debit), 0)
        )
        .where(BankStatementLine.user_id == user_id)
        .where(BankStatementLine.transaction_date < start_date)
    )
    return _quantize_money(net_result.scalar())


async def get_receipts_and_payments(
    db: AsyncSession, user_id: UUID, start_date: date, end_date: date
) -> ReceiptsPaymentsReport:
    """Cash receipts and payments for a period, with opening balance carried forward.

    Raises:
        ValidationError: If ``start_date`` is after ``end_date``.
    """
    if start_date > end_date:
        raise ValidationError("start_date must be before or equal to end_date")

    opening_balance = await _opening_balance(db, user_id, start_date)

    result = await db.execute(
        select(BankStatementLine)
        .where(BankStatementLine.user_id == user_id)
        .where(BankStatementLine.transaction_date >= start_date)
        .where(BankStatementLine.transaction_date <= end_date)
        .order_by(BankStatementLine.transaction_date, BankStatementLine.created_at)
    )
    receipts: list[ReceiptsPaymentsItem] = []
    payments: list[ReceiptsPaymentsItem] = []
    for line in result.scalars().all():
        if line.credit > 0:
            receipts.append(
                ReceiptsPaymentsItem(
                    transaction_date=line.transaction_date,
                    description=line.description,
                    amount=_quantize_money(line.credit),
                )
            )
        elif line.debit > 0:
            payments.append(
                ReceiptsPaymentsItem(
                    transaction_date=line.transaction_date,
                    description=line.description,
                    amount=_quantize_money(line.debit),
                )
            )

    total_receipts = _quantize_money(sum((item.amount for item in receipts), ZERO))
    total_payments = _quantize_money(sum((item.amount for item in payments), ZERO))

    return ReceiptsPaymentsReport(
        start_date=start_date,
        end_date=end_date,
        opening_balance=opening_balance,
        receipts=receipts,
        payments=payments,
        total_receipts=total_receipts,
        total_payments=total_payments,
        closing_balance=opening_balance + total_receipts - total_payments,
    )
