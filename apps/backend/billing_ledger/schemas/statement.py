"""Pydantic schemas for bank statement import."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from billing_ledger.models.statement import BankStatementStatus
from billing_ledger.schemas.base import BaseResponse, ListResponse


class BankStatementImportData(BaseModel):
    """One raw statement row as supplied by CSV/XLSX ingestion.

    Values are kept as strings; the importer validates and converts them.
    """

    model_config = ConfigDict(populate_by_name=True)

    date: str = ""
    description: str = ""
    debit: str | None = None
    credit: str | None = None
    balance: str | None = None
    transaction_id: str | None = Field(default=None, alias="transactionId")

    @field_validator("date", "description", mode="before")
    @classmethod
    def _coerce_required(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("debit", "credit", "balance", "transaction_id", mode="before")
    @classmethod
    def _coerce_optional(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class BankStatementImportRequest(BaseModel):
    """Request body for importing parsed statement rows."""

    rows: list[BankStatementImportData]
    source_file_name: Annotated[str, Field(min_length=1, max_length=255)] = "manual-import"


class BankStatementImportResult(BaseModel):
    """Outcome of an import batch. Partial success is reported, not raised."""

    success: bool
    imported_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    errors: list[str] = Field(default_factory=list)


class BankStatementResponse(BaseResponse):
    """Imported statement line."""

    id: UUID
    user_id: UUID
    transaction_id: str
    transaction_date: date
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal | None
    status: BankStatementStatus
    source_file: str | None
    created_at: datetime
    updated_at: datetime


BankStatementListResponse = ListResponse[BankStatementResponse]
