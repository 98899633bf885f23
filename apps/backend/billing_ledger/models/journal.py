"""Journal models for double-entry bookkeeping."""

from __future__ import annotations

import enum
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_ledger.database import Base
from billing_ledger.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin

if TYPE_CHECKING:
    from billing_ledger.models.account import Account


class JournalStatus(str, enum.Enum):
    """Status of a journal."""

    DRAFT = "draft"
    POSTED = "posted"
    VOID = "void"


class JournalSourceType(str, enum.Enum):
    """Where a journal originated."""

    MANUAL = "manual"
    BANK_STATEMENT = "bank_statement"


class ApprovalStatus(str, enum.Enum):
    """Approval workflow state of a journal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Journal(Base, UUIDMixin, UserOwnedMixin, TimestampMixin):
    """
    Journal header for a bookkeeping transaction.

    Each journal has at least 2 lines whose debit total equals the credit
    total. ``journal_number`` is sequential per user (JE001, JE002, ...).
    """

    __tablename__ = "journals"
    __table_args__ = (
        UniqueConstraint("user_id", "journal_number", name="uq_journals_user_number"),
        CheckConstraint("total_debit = total_credit", name="ck_journals_balanced"),
    )

    journal_number: Mapped[str] = mapped_column(String(32), nullable=False)
    journal_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    narration: Mapped[str] = mapped_column(String(500), nullable=False)
    total_debit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_credit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    status: Mapped[JournalStatus] = mapped_column(
        Enum(
            JournalStatus,
            name="journal_status_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=JournalStatus.DRAFT,
        index=True,
    )
    source_type: Mapped[JournalSourceType] = mapped_column(
        Enum(
            JournalSourceType,
            name="journal_source_type_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=JournalSourceType.MANUAL,
    )
    source_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    void_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    lines: Mapped[list[JournalLine]] = relationship(
        "JournalLine",
        back_populates="journal",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Journal {self.journal_number} ({self.status.value})>"


class JournalLine(Base, UUIDMixin, TimestampMixin):
    """
    One leg of a journal.

    Exactly one of ``debit`` / ``credit`` is non-zero.
    """

    __tablename__ = "journal_lines"
    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_journal_lines_non_negative"),
        CheckConstraint(
            "(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)",
            name="ck_journal_lines_one_side",
        ),
    )

    journal_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("journals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id"), nullable=False, index=True
    )
    debit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    credit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    line_narration: Mapped[str | None] = mapped_column(String(500), nullable=True)

    journal: Mapped[Journal] = relationship("Journal", back_populates="lines")
    account: Mapped[Account] = relationship("Account")


class JournalApprovalWorkflow(Base, UUIDMixin):
    """Approval record created alongside every posted-from-statement journal."""

    __tablename__ = "journal_approval_workflow"

    journal_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("journals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(
            ApprovalStatus,
            name="journal_approval_status_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
