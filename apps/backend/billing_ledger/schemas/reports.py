"""Pydantic schemas for ledger reports."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from billing_ledger.models.account import AccountType


class TrialBalanceRow(BaseModel):
    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit: Decimal
    credit: Decimal


class TrialBalanceReport(BaseModel):
    """Per-account totals of posted journals."""

    as_of: date | None = None
    rows: list[TrialBalanceRow] = Field(default_factory=list)
    total_debit: Decimal = Decimal("0")
    total_credit: Decimal = Decimal("0")
    is_balanced: bool = True


class ReceiptsPaymentsItem(BaseModel):
    transaction_date: date
    description: str
    amount: Decimal


class ReceiptsPaymentsReport(BaseModel):
    """Cash movement over a period with balance carried forward."""

    start_date: date
    end_date: date
    opening_balance: Decimal
    receipts: list[ReceiptsPaymentsItem] = Field(default_factory=list)
    payments: list[ReceiptsPaymentsItem] = Field(default_factory=list)
    total_receipts: Decimal
    total_payments: Decimal
    closing_balance: Decimal
