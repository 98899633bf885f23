"""Bank statement import, listing and deletion."""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from billing_ledger.config import settings
from billing_ledger.logger import async_log_timing, get_logger
from billing_ledger.models import BankStatementLine, BankStatementStatus
from billing_ledger.schemas.statement import BankStatementImportData, BankStatementImportResult
from billing_ledger.services.csv_parsing import parse_bank_statement_csv
from billing_ledger.services.errors import (
    StatementNotFound,
    StatementQueryFailed,
    ValidationError,
)

logger = get_logger(__name__)

MISSING_FIELDS_ERROR = "Missing required fields (date or description)"
DUPLICATES_NOTICE = "Some transactions already exist and were skipped"
NO_VALID_ROWS_ERROR = "No valid bank statements to import"

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d %b %Y")
_AMOUNT_NOISE = re.compile(r"[,\s₹]")

# Statement amounts are stored as Numeric(18, 2).
AMOUNT_PLACES = Decimal("0.01")
AMOUNT_LIMIT = Decimal(10) ** 16
TRANSACTION_ID_MAX_LENGTH = 255


def parse_amount(value: str | None) -> Decimal:
    """Parse a statement amount; blank means zero.

    Raises:
        ValueError: If the value is not numeric, has more than two decimal
            places or more than 16 integer digits.
    """
    if value is None:
        return Decimal("0")
    cleaned = _AMOUNT_NOISE.sub("", value)
    if not cleaned:
        return Decimal("0")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"not a number: {value!r}")
    if abs(amount) >= AMOUNT_LIMIT or amount != amount.quantize(AMOUNT_PLACES):
        raise ValueError(f"amount out of range: {value!r}")
    return amount


def parse_statement_date(value: str) -> date:
    """Parse a statement date in any of the supported bank formats."""
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognized date: {value!r}")


def format_key_amount(amount: Decimal) -> str:
    """Render an amount for a natural key without trailing zeros (1000.00 -> 1000)."""
    normalized = amount.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")


def synthesize_transaction_id(raw_date: str, row_number: int, debit: Decimal, credit: Decimal) -> str:
    """Deterministic natural key for rows without a bank-supplied identifier.

    Format: ``{date}-{row_number}-{amount}``, e.g. ``2024-01-15-1-1000``.
    Re-importing the same file yields the same keys, so duplicates are
    rejected by the ``(user_id, transaction_id)`` unique constraint.
    """
    amount = debit if debit else credit
    return f"{raw_date.strip()}-{row_number}-{format_key_amount(amount)}"


def _validate_row(row: BankStatementImportData, row_number: int) -> tuple[dict | None, str | None]:
    """Validate one raw row. Returns (values, None) or (None, error message)."""
    if not row.date or not row.description:
        return None, f"Row {row_number}: {MISSING_FIELDS_ERROR}"

    try:
        transaction_date = parse_statement_date(row.date)
    except ValueError:
        return None, f"Row {row_number}: Invalid date"

    try:
        debit = parse_amount(row.debit)
        credit = parse_amount(row.credit)
        balance = parse_amount(row.balance) if row.balance is not None else None
    except ValueError:
        return None, f"Row {row_number}: Invalid amount"

    if debit < 0 or credit < 0:
        return None, f"Row {row_number}: Amounts cannot be negative"
    if debit and credit:
        return None, f"Row {row_number}: Debit and credit cannot both be non-zero"
    if row.transaction_id and len(row.transaction_id) > TRANSACTION_ID_MAX_LENGTH:
        return None, f"Row {row_number}: Transaction ID too long"

    transaction_id = row.transaction_id or synthesize_transaction_id(row.date, row_number, debit, credit)
    return {
        "transaction_id": transaction_id,
        "transaction_date": transaction_date,
        "description": row.description,
        "debit": debit,
        "credit": credit,
        "balance": balance,
    }, None


async def import_bank_statements(
    db: AsyncSession,
    user_id: UUID,
    rows: Sequence[BankStatementImportData],
    source_file_name: str,
) -> BankStatementImportResult:
    """Validate and persist statement rows.

    Invalid rows are reported individually and never block valid rows.
    Rows whose natural key already exists are skipped, not failed. Rows are
    written in input order, each in its own savepoint.
    """
    if len(rows) > settings.import_max_rows:
        raise ValidationError(
            f"Import batch too large: {len(rows)} rows (max {settings.import_max_rows})"
        )

    errors: list[str] = []
    valid: list[dict] = []
    for row_number, row in enumerate(rows, start=1):
        values, error = _validate_row(row, row_number)
        if error:
            errors.append(error)
        else:
            valid.append(values)

    error_count = len(errors)
    if not valid:
        errors.append(NO_VALID_ROWS_ERROR)
        logger.warning(
            "Bank statement import rejected",
            user_id=str(user_id),
            source_file=source_file_name,
            error_count=error_count,
        )
        return BankStatementImportResult(
            success=False,
            imported_count=0,
            skipped_count=0,
            error_count=error_count,
            errors=errors,
        )

    imported = 0
    skipped = 0
    seen_keys: set[str] = set()
    async with async_log_timing(
        "import_bank_statements",
        logger=logger,
        user_id=str(user_id),
        source_file=source_file_name,
        rows=len(rows),
    ) as timing:
        for values in valid:
            if values["transaction_id"] in seen_keys:
                skipped += 1
                continue
            seen_keys.add(values["transaction_id"])
            try:
                async with db.begin_nested():
                    db.add(
                        BankStatementLine(
                            user_id=user_id,
                            status=BankStatementStatus.UNMATCHED,
                            source_file=source_file_name,
                            **values,
                        )
                    )
            except IntegrityError:
                skipped += 1
            else:
                imported += 1
        timing.update(imported=imported, skipped=skipped, errors=error_count)

    if skipped:
        errors.append(DUPLICATES_NOTICE)

    return BankStatementImportResult(
        success=True,
        imported_count=imported,
        skipped_count=skipped,
        error_count=error_count,
        errors=errors,
    )


async def import_bank_statement_csv(
    db: AsyncSession,
    user_id: UUID,
    content: str | bytes,
    source_file_name: str,
) -> BankStatementImportResult:
    """Parse a CSV export and import its rows."""
    rows = parse_bank_statement_csv(content)
    return await import_bank_statements(db, user_id, rows, source_file_name)


async def get_bank_statements(
    db: AsyncSession,
    user_id: UUID,
    status: BankStatementStatus | None = None,
) -> list[BankStatementLine]:
    """List a user's statement lines, newest first."""
    query = select(BankStatementLine).where(BankStatementLine.user_id == user_id)
    if status is not None:
        query = query.where(BankStatementLine.status == status)
    query = query.order_by(
        BankStatementLine.transaction_date.desc(), BankStatementLine.created_at.desc()
    )
    try:
        result = await db.execute(query)
    except SQLAlchemyError as exc:
        raise StatementQueryFailed(f"Failed to fetch bank statements: {exc}") from exc
    return list(result.scalars().all())


async def get_bank_statement(db: AsyncSession, user_id: UUID, statement_id: UUID) -> BankStatementLine:
    result = await db.execute(
        select(BankStatementLine)
        .where(BankStatementLine.id == statement_id)
        .where(BankStatementLine.user_id == user_id)
    )
    statement = result.scalar_one_or_none()
    if statement is None:
        raise StatementNotFound(f"Bank statement {statement_id} not found")
    return statement


async def delete_bank_statement(db: AsyncSession, user_id: UUID, statement_id: UUID) -> None:
    """Delete a statement line and its reconciliation link."""
    statement = await get_bank_statement(db, user_id, statement_id)
    await db.refresh(statement, ["link"])
    await db.delete(statement)
    await db.flush()
    logger.info("Bank statement deleted", user_id=str(user_id), statement_id=str(statement_id))
