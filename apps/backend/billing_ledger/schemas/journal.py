"""Pydantic schemas for journals."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from billing_ledger.models.journal import JournalSourceType, JournalStatus
from billing_ledger.schemas.base import BaseResponse, ListResponse

Money = Annotated[Decimal, Field(ge=0, max_digits=18, decimal_places=2)]
PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=18, decimal_places=2)]


class JournalLineDraft(BaseModel):
    """One leg of a journal to be posted."""

    account_id: UUID
    debit: Money = Decimal("0")
    credit: Money = Decimal("0")
    line_narration: Annotated[str | None, Field(max_length=500)] = None

    @model_validator(mode="after")
    def validate_one_side(self) -> "JournalLineDraft":
        """Exactly one of debit/credit must be non-zero."""
        if (self.debit > 0) == (self.credit > 0):
            raise ValueError("Journal line must have exactly one of debit or credit")
        return self


class JournalDraft(BaseModel):
    """Input to the generic posting interface.

    Balance (debits == credits) is checked by the posting service so that
    callers receive a domain ValidationError.
    """

    journal_date: date
    narration: Annotated[str, Field(min_length=1, max_length=500)]
    lines: list[JournalLineDraft]
    source_type: JournalSourceType = JournalSourceType.MANUAL
    source_id: UUID | None = None


class CreateJournalFromBankStatement(BaseModel):
    """Request to post a two-line journal explaining a statement line."""

    bank_statement_id: UUID
    journal_date: date
    narration: Annotated[str, Field(min_length=1, max_length=500)]
    account_id: UUID
    amount: PositiveMoney
    is_debit: bool
    contra_account_id: UUID

    @model_validator(mode="after")
    def validate_distinct_accounts(self) -> "CreateJournalFromBankStatement":
        if self.account_id == self.contra_account_id:
            raise ValueError("account_id and contra_account_id must differ")
        return self


class JournalCreatedResponse(BaseModel):
    journal_id: UUID


class JournalLineResponse(BaseResponse):
    id: UUID
    journal_id: UUID
    account_id: UUID
    debit: Decimal
    credit: Decimal
    line_narration: str | None


class JournalResponse(BaseResponse):
    """Journal with its lines."""

    id: UUID
    user_id: UUID
    journal_number: str
    journal_date: date
    narration: str
    total_debit: Decimal
    total_credit: Decimal
    status: JournalStatus
    source_type: JournalSourceType
    source_id: UUID | None = None
    void_reason: str | None = None
    lines: list[JournalLineResponse]
    created_at: datetime
    updated_at: datetime


JournalListResponse = ListResponse[JournalResponse]


class VoidJournalRequest(BaseModel):
    reason: Annotated[str, Field(min_length=1, max_length=500)]
