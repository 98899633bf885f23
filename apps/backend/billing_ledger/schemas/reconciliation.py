"""Pydantic schemas for reconciliation API."""

from uuid import UUID

from pydantic import BaseModel, Field


class AutoMatchResult(BaseModel):
    """Aggregate counts returned by an auto-matching run."""

    matched_count: int = Field(default=0, ge=0)
    partially_matched_count: int = Field(default=0, ge=0)


class ManualMatchRequest(BaseModel):
    """Request body to link a statement line to a journal."""

    bank_statement_id: UUID
    journal_id: UUID


class ReconciliationReport(BaseModel):
    """Derived summary of reconciliation progress (not persisted)."""

    total_bank_statements: int
    total_journals: int
    matched_count: int
    unmatched_count: int
    partially_matched_count: int
    reconciliation_percentage: int = Field(ge=0, le=100)
