"""Reconciliation API router."""

from uuid import UUID

from fastapi import APIRouter, status

from billing_ledger.deps import CurrentUserId, DbSession
from billing_ledger.schemas import AutoMatchResult, ManualMatchRequest, ReconciliationReport
from billing_ledger.services import (
    MatchingFailed,
    ReconciliationCreationFailed,
    StatementNotFound,
    auto_match_bank_statements,
    get_reconciliation_report,
    manual_match_bank_statement,
    unmatch_bank_statement,
)
from billing_ledger.utils import raise_conflict, raise_internal_error, raise_not_found

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.post("/auto-match", response_model=AutoMatchResult)
async def run_auto_match(db: DbSession, user_id: CurrentUserId) -> AutoMatchResult:
    """Match all unmatched statement lines against journals."""
    try:
        result = await auto_match_bank_statements(db, user_id)
    except MatchingFailed as exc:
        await db.rollback()
        raise_internal_error(str(exc), cause=exc)

    await db.commit()
    return result


@router.post("/manual-match", status_code=status.HTTP_204_NO_CONTENT)
async def manual_match(
    payload: ManualMatchRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> None:
    """Link a statement line to a journal chosen by the user."""
    try:
        await manual_match_bank_statement(db, user_id, payload.bank_statement_id, payload.journal_id)
    except ReconciliationCreationFailed as exc:
        await db.rollback()
        raise_conflict(str(exc), cause=exc)

    await db.commit()


@router.post("/{statement_id}/unmatch", status_code=status.HTTP_204_NO_CONTENT)
async def unmatch(statement_id: UUID, db: DbSession, user_id: CurrentUserId) -> None:
    """Remove a statement line's link and reset it to unmatched."""
    try:
        await unmatch_bank_statement(db, user_id, statement_id)
    except StatementNotFound as exc:
        raise_not_found(str(exc), cause=exc)

    await db.commit()


@router.get("/report", response_model=ReconciliationReport)
async def reconciliation_report(db: DbSession, user_id: CurrentUserId) -> ReconciliationReport:
    """Reconciliation progress summary."""
    return await get_reconciliation_report(db, user_id)
