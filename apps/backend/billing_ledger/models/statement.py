"""Imported bank statement lines."""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, Enum, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_ledger.database import Base
from billing_ledger.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin

if TYPE_CHECKING:
    from billing_ledger.models.reconciliation import ReconciliationLink


class BankStatementStatus(str, enum.Enum):
    """Reconciliation status of a statement line."""

    UNMATCHED = "unmatched"
    PARTIALLY_MATCHED = "partially_matched"
    MATCHED = "matched"


class BankStatementLine(Base, UUIDMixin, UserOwnedMixin, TimestampMixin):
    """One imported bank transaction.

    ``transaction_id`` is the natural key: supplied by the bank export or
    synthesized from date, row sequence and amount at import time.
    """

    __tablename__ = "bank_statement_lines"
    __table_args__ = (
        UniqueConstraint("user_id", "transaction_id", name="uq_bank_statement_lines_user_txn"),
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_bank_statement_lines_non_negative"),
        CheckConstraint("debit = 0 OR credit = 0", name="ck_bank_statement_lines_one_side"),
    )

    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    debit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    credit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    balance: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    status: Mapped[BankStatementStatus] = mapped_column(
        Enum(
            BankStatementStatus,
            name="bank_statement_status_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=BankStatementStatus.UNMATCHED,
        index=True,
    )
    source_file: Mapped[str | None] = mapped_column(String(255), nullable=True)

    link: Mapped[ReconciliationLink | None] = relationship(
        "ReconciliationLink",
        back_populates="bank_statement",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def amount(self) -> Decimal:
        """The non-zero side of the line."""
        return self.debit if self.debit else self.credit

    def __repr__(self) -> str:
        return f"<BankStatementLine {self.transaction_id} ({self.status.value})>"
