"""Bank statement import API router."""

from uuid import UUID

from fastapi import APIRouter, File, Query, UploadFile, status

from billing_ledger.deps import CurrentUserId, DbSession
from billing_ledger.logger import get_logger
from billing_ledger.models import BankStatementStatus
from billing_ledger.schemas import (
    BankStatementImportRequest,
    BankStatementImportResult,
    BankStatementListResponse,
    BankStatementResponse,
)
from billing_ledger.services import (
    StatementNotFound,
    StatementQueryFailed,
    ValidationError,
    delete_bank_statement,
    get_bank_statements,
    import_bank_statement_csv,
    import_bank_statements,
)
from billing_ledger.utils import (
    raise_bad_request,
    raise_internal_error,
    raise_not_found,
    raise_too_large,
)

router = APIRouter(prefix="/bank-statements", tags=["bank-statements"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
logger = get_logger(__name__)


@router.post("/import", response_model=BankStatementImportResult)
async def import_statement_rows(
    payload: BankStatementImportRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> BankStatementImportResult:
    """Import already-parsed statement rows."""
    try:
        result = await import_bank_statements(db, user_id, payload.rows, payload.source_file_name)
    except ValidationError as exc:
        raise_bad_request(str(exc), cause=exc)

    await db.commit()
    return result


@router.post("/import/csv", response_model=BankStatementImportResult)
async def import_statement_csv(
    db: DbSession,
    user_id: CurrentUserId,
    file: UploadFile = File(...),
) -> BankStatementImportResult:
    """Upload a bank CSV export and import its rows."""
    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise_too_large(f"File too large (max {MAX_UPLOAD_BYTES // (1024 * 1024)} MB)")

    filename = file.filename or "upload.csv"
    try:
        result = await import_bank_statement_csv(db, user_id, content, filename)
    except UnicodeDecodeError as exc:
        raise_bad_request("CSV file must be UTF-8 encoded", cause=exc)
    except ValidationError as exc:
        raise_bad_request(str(exc), cause=exc)

    await db.commit()
    logger.info(
        "CSV statement imported",
        user_id=str(user_id),
        filename=filename,
        imported=result.imported_count,
        skipped=result.skipped_count,
        errors=result.error_count,
    )
    return result


@router.get("", response_model=BankStatementListResponse)
async def list_statement_lines(
    db: DbSession,
    user_id: CurrentUserId,
    status_filter: BankStatementStatus | None = Query(default=None, alias="status"),
) -> BankStatementListResponse:
    """List imported statement lines, optionally by reconciliation status."""
    try:
        lines = await get_bank_statements(db, user_id, status=status_filter)
    except StatementQueryFailed as exc:
        raise_internal_error(str(exc), cause=exc)

    items = [BankStatementResponse.model_validate(line) for line in lines]
    return BankStatementListResponse(items=items, total=len(items))


@router.delete("/{statement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_statement_line(
    statement_id: UUID,
    db: DbSession,
    user_id: CurrentUserId,
) -> None:
    """Delete a statement line together with its reconciliation link."""
    try:
        await delete_bank_statement(db, user_id, statement_id)
    except StatementNotFound as exc:
        raise_not_found(str(exc), cause=exc)

    await db.commit()
