"""Ledger report API router."""

from datetime import date

from fastapi import APIRouter, Query

from billing_ledger.deps import CurrentUserId, DbSession
from billing_ledger.schemas import ReceiptsPaymentsReport, TrialBalanceReport
from billing_ledger.services import ValidationError, get_receipts_and_payments, get_trial_balance
from billing_ledger.utils import raise_bad_request

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/trial-balance", response_model=TrialBalanceReport)
async def trial_balance(
    db: DbSession,
    user_id: CurrentUserId,
    as_of: date | None = Query(default=None),
) -> TrialBalanceReport:
    """Per-account totals of posted journals."""
    return await get_trial_balance(db, user_id, as_of=as_of)


@router.get("/receipts-payments", response_model=ReceiptsPaymentsReport)
async def receipts_payments(
    db: DbSession,
    user_id: CurrentUserId,
    start_date: date = Query(...),
    end_date: date = Query(...),
) -> ReceiptsPaymentsReport:
    """Receipts and payments for a period with opening balance brought forward."""
    try:
        return await get_receipts_and_payments(db, user_id, start_date, end_date)
    except ValidationError as exc:
        raise_bad_request(str(exc), cause=exc)
