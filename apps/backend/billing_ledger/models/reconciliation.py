"""Reconciliation link between a statement line and a journal."""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_ledger.database import Base
from billing_ledger.models.base import UserOwnedMixin, UUIDMixin

if TYPE_CHECKING:
    from billing_ledger.models.statement import BankStatementLine


class MatchType(str, enum.Enum):
    """How a link was created."""

    MANUAL = "manual"
    AUTO = "auto"


class ReconciliationLink(Base, UUIDMixin, UserOwnedMixin):
    """Links one statement line to the journal that explains it.

    ``bank_statement_id`` is unique: a line holds at most one active link.
    """

    __tablename__ = "bank_statement_reconciliation"

    bank_statement_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("bank_statement_lines.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    journal_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("journals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    match_type: Mapped[MatchType] = mapped_column(
        Enum(
            MatchType,
            name="reconciliation_match_type_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=MatchType.MANUAL,
    )
    matched_amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    bank_statement: Mapped[BankStatementLine] = relationship(
        "BankStatementLine", back_populates="link"
    )
