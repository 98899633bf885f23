"""Chart-of-accounts model.

Accounts are owned by the ledger-setup flow; this service only reads them.
"""

from __future__ import annotations

import enum

from sqlalchemy import Boolean, Enum, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billing_ledger.database import Base
from billing_ledger.models.base import TimestampMixin, UserOwnedMixin, UUIDMixin


class AccountType(str, enum.Enum):
    """Account type classification."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"


class Account(Base, UUIDMixin, UserOwnedMixin, TimestampMixin):
    """
    Account represents a ledger account in the chart of accounts.

    Follows the accounting equation:
    Assets = Liabilities + Equity + (Income - Expenses)
    """

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("user_id", "code", name="uq_accounts_user_code"),)

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AccountType] = mapped_column(
        Enum(
            AccountType,
            name="account_type_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Account {self.code} {self.name} ({self.type.value})>"
