"""Tests for bank statement import, listing and deletion."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from billing_ledger.config import settings
from billing_ledger.models import (
    BankStatementLine,
    BankStatementStatus,
    MatchType,
    ReconciliationLink,
)
from billing_ledger.schemas import BankStatementImportData
from billing_ledger.services.errors import (
    InvalidCSVFormat,
    StatementNotFound,
    StatementQueryFailed,
    ValidationError,
)
from billing_ledger.services.statement_import import (
    DUPLICATES_NOTICE,
    NO_VALID_ROWS_ERROR,
    delete_bank_statement,
    format_key_amount,
    get_bank_statements,
    import_bank_statement_csv,
    import_bank_statements,
    parse_amount,
    parse_statement_date,
    synthesize_transaction_id,
)
from tests.factories import AccountFactory, BankStatementLineFactory, JournalFactory


def _row(**kwargs) -> BankStatementImportData:
    defaults = {"date": "2024-01-15", "description": "Payment received", "debit": "0", "credit": "1000"}
    defaults.update(kwargs)
    return BankStatementImportData(**defaults)


async def _count_lines(db, user_id) -> int:
    result = await db.execute(
        select(func.count()).select_from(BankStatementLine).where(BankStatementLine.user_id == user_id)
    )
    return result.scalar_one()


# --- Pure helpers ---


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("1000", Decimal("1000")),
        ("1,250.50", Decimal("1250.50")),
        (" ₹ 99.90 ", Decimal("99.90")),
    ],
)
def test_parse_amount(raw, expected) -> None:
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "12..5", "NaN", "Infinity"])
def test_parse_amount_rejects_non_numeric(raw) -> None:
    with pytest.raises(ValueError):
        parse_amount(raw)


@pytest.mark.parametrize("raw", ["100.005", "0.001", "12345678901234567890", "10000000000000000", "1E+30"])
def test_parse_amount_rejects_values_outside_column_range(raw) -> None:
    with pytest.raises(ValueError, match="out of range"):
        parse_amount(raw)


def test_parse_amount_accepts_column_limits() -> None:
    assert parse_amount("9999999999999999.99") == Decimal("9999999999999999.99")
    assert parse_amount("100.500") == Decimal("100.5")


@pytest.mark.parametrize(
    "raw",
    ["2024-01-15", "15/01/2024", "15-01-2024", "15 Jan 2024"],
)
def test_parse_statement_date_formats(raw) -> None:
    assert parse_statement_date(raw) == date(2024, 1, 15)


def test_format_key_amount_drops_trailing_zeros() -> None:
    assert format_key_amount(Decimal("1000.00")) == "1000"
    assert format_key_amount(Decimal("1E+3")) == "1000"
    assert format_key_amount(Decimal("12.50")) == "12.5"


def test_synthesize_transaction_id() -> None:
    assert synthesize_transaction_id("2024-01-15", 1, Decimal("0"), Decimal("1000")) == "2024-01-15-1-1000"
    assert synthesize_transaction_id("2024-01-16", 2, Decimal("2000.00"), Decimal("0")) == "2024-01-16-2-2000"


def test_import_row_accepts_camel_case_transaction_id() -> None:
    row = BankStatementImportData.model_validate(
        {"date": " 2024-01-15 ", "description": "x", "transactionId": "TXN-1", "credit": 5}
    )

    assert row.date == "2024-01-15"
    assert row.transaction_id == "TXN-1"
    assert row.credit == "5"


# --- Import ---


@pytest.mark.asyncio
async def test_import_valid_statements(db, user_id) -> None:
    rows = [
        _row(balance="5000", transactionId="TXN-001"),
        _row(date="2024-01-16", description="Office rent payment", debit="2000", credit="0", transactionId="TXN-002"),
    ]

    result = await import_bank_statements(db, user_id, rows, "test-statements.csv")
    await db.commit()

    assert result.success is True
    assert result.imported_count == 2
    assert result.skipped_count == 0
    assert result.error_count == 0
    assert result.errors == []

    lines = await get_bank_statements(db, user_id)
    assert {line.transaction_id for line in lines} == {"TXN-001", "TXN-002"}
    assert all(line.status == BankStatementStatus.UNMATCHED for line in lines)
    assert all(line.source_file == "test-statements.csv" for line in lines)
    rent = next(line for line in lines if line.transaction_id == "TXN-002")
    assert rent.debit == Decimal("2000")
    assert rent.credit == Decimal("0")


@pytest.mark.asyncio
async def test_import_reports_rows_missing_required_fields(db, user_id) -> None:
    rows = [_row(), _row(date="", description="No date"), _row(description="")]

    result = await import_bank_statements(db, user_id, rows, "partial.csv")

    assert result.success is True
    assert result.imported_count == 1
    assert result.error_count == 2
    assert result.errors == [
        "Row 2: Missing required fields (date or description)",
        "Row 3: Missing required fields (date or description)",
    ]


@pytest.mark.asyncio
async def test_import_synthesizes_transaction_id(db, user_id) -> None:
    result = await import_bank_statements(db, user_id, [_row()], "synth.csv")

    assert result.imported_count == 1
    lines = await get_bank_statements(db, user_id)
    assert lines[0].transaction_id == "2024-01-15-1-1000"


@pytest.mark.asyncio
async def test_reimport_skips_existing_transactions(db, user_id) -> None:
    rows = [_row(transactionId="TXN-001"), _row(date="2024-01-16", transactionId="TXN-002")]
    await import_bank_statements(db, user_id, rows, "first.csv")
    await db.commit()

    result = await import_bank_statements(
        db, user_id, rows + [_row(date="2024-01-17", transactionId="TXN-003")], "second.csv"
    )
    await db.commit()

    assert result.success is True
    assert result.imported_count == 1
    assert result.skipped_count == 2
    assert result.errors == [DUPLICATES_NOTICE]
    assert await _count_lines(db, user_id) == 3


@pytest.mark.asyncio
async def test_reimport_of_synthesized_keys_is_idempotent(db, user_id) -> None:
    rows = [_row(), _row(date="2024-01-16", debit="50", credit="0")]
    await import_bank_statements(db, user_id, rows, "a.csv")

    result = await import_bank_statements(db, user_id, rows, "a.csv")

    assert result.imported_count == 0
    assert result.skipped_count == 2
    assert result.success is True
    assert await _count_lines(db, user_id) == 2


@pytest.mark.asyncio
async def test_duplicate_key_within_batch_is_skipped(db, user_id) -> None:
    rows = [_row(transactionId="DUP"), _row(date="2024-01-20", transactionId="DUP")]

    result = await import_bank_statements(db, user_id, rows, "dup.csv")

    assert result.imported_count == 1
    assert result.skipped_count == 1
    assert DUPLICATES_NOTICE in result.errors


@pytest.mark.asyncio
async def test_same_transaction_id_for_different_users(db, user_id, other_user_id) -> None:
    await import_bank_statements(db, user_id, [_row(transactionId="TXN-1")], "a.csv")

    result = await import_bank_statements(db, other_user_id, [_row(transactionId="TXN-1")], "b.csv")

    assert result.imported_count == 1
    assert result.skipped_count == 0


@pytest.mark.asyncio
async def test_import_with_no_valid_rows_fails(db, user_id) -> None:
    result = await import_bank_statements(db, user_id, [_row(date=""), _row(description="")], "bad.csv")

    assert result.success is False
    assert result.imported_count == 0
    assert result.error_count == 2
    assert NO_VALID_ROWS_ERROR in result.errors
    assert await _count_lines(db, user_id) == 0


@pytest.mark.asyncio
async def test_import_empty_batch_fails(db, user_id) -> None:
    result = await import_bank_statements(db, user_id, [], "empty.csv")

    assert result.success is False
    assert result.errors == [NO_VALID_ROWS_ERROR]


@pytest.mark.asyncio
async def test_import_rejects_malformed_values_per_row(db, user_id) -> None:
    rows = [
        _row(debit="abc", credit="0"),
        _row(date="not-a-date"),
        _row(debit="-5", credit="0"),
        _row(debit="10", credit="20"),
        _row(date="2024-02-01", transactionId="OK"),
    ]

    result = await import_bank_statements(db, user_id, rows, "mixed.csv")

    assert result.imported_count == 1
    assert result.errors == [
        "Row 1: Invalid amount",
        "Row 2: Invalid date",
        "Row 3: Amounts cannot be negative",
        "Row 4: Debit and credit cannot both be non-zero",
    ]


@pytest.mark.asyncio
async def test_import_rejects_amounts_that_do_not_fit_storage(db, user_id) -> None:
    rows = [
        _row(debit="100.005", credit="0", transactionId="T1"),
        _row(debit="12345678901234567890", credit="0", transactionId="T2"),
        _row(balance="99999999999999999", transactionId="T3"),
        _row(transactionId="X" * 256),
        _row(debit="100.50", credit="0", transactionId="T5"),
    ]

    result = await import_bank_statements(db, user_id, rows, "precision.csv")

    assert result.success is True
    assert result.imported_count == 1
    assert result.error_count == 4
    assert result.errors == [
        "Row 1: Invalid amount",
        "Row 2: Invalid amount",
        "Row 3: Invalid amount",
        "Row 4: Transaction ID too long",
    ]
    lines = await get_bank_statements(db, user_id)
    assert [(line.transaction_id, line.debit) for line in lines] == [("T5", Decimal("100.50"))]


@pytest.mark.asyncio
async def test_import_rejects_oversized_batch(db, user_id, monkeypatch) -> None:
    monkeypatch.setattr(settings, "import_max_rows", 2)

    with pytest.raises(ValidationError, match="Import batch too large"):
        await import_bank_statements(db, user_id, [_row(), _row(), _row()], "big.csv")


@pytest.mark.asyncio
async def test_import_bank_statement_csv(db, user_id) -> None:
    content = (
        "Transaction Date,Narration,Withdrawal,Deposit,Running Balance\n"
        "2024-01-15,Payment received,0,1000,5000\n"
        "2024-01-16,Incomplete\n"
        "2024-01-17,Rent,2000,0,3000\n"
    )

    result = await import_bank_statement_csv(db, user_id, content, "hdfc.csv")

    assert result.success is True
    assert result.imported_count == 2
    lines = await get_bank_statements(db, user_id)
    assert [line.description for line in lines] == ["Rent", "Payment received"]
    assert lines[0].balance == Decimal("3000")


@pytest.mark.asyncio
async def test_import_bank_statement_csv_invalid_format(db, user_id) -> None:
    with pytest.raises(InvalidCSVFormat):
        await import_bank_statement_csv(db, user_id, "Invalid,Header\n", "bad.csv")


# --- Listing & deletion ---


@pytest.mark.asyncio
async def test_get_bank_statements_filters_by_status_and_user(db, user_id, other_user_id) -> None:
    await BankStatementLineFactory.create_async(db, user_id=user_id)
    await BankStatementLineFactory.create_async(
        db, user_id=user_id, status=BankStatementStatus.MATCHED
    )
    await BankStatementLineFactory.create_async(db, user_id=other_user_id)

    all_lines = await get_bank_statements(db, user_id)
    matched = await get_bank_statements(db, user_id, status=BankStatementStatus.MATCHED)

    assert len(all_lines) == 2
    assert len(matched) == 1
    assert matched[0].status == BankStatementStatus.MATCHED


@pytest.mark.asyncio
async def test_get_bank_statements_wraps_store_failure(db, user_id) -> None:
    failure = OperationalError("SELECT", {}, Exception("Database connection failed"))

    with patch.object(db, "execute", side_effect=failure):
        with pytest.raises(StatementQueryFailed) as exc_info:
            await get_bank_statements(db, user_id)

    message = str(exc_info.value)
    assert message.startswith("Failed to fetch bank statements: ")
    assert "Database connection failed" in message


@pytest.mark.asyncio
async def test_delete_bank_statement_removes_link(db, user_id) -> None:
    debit_account = await AccountFactory.create_async(db, user_id=user_id)
    credit_account = await AccountFactory.create_async(db, user_id=user_id)
    journal = await JournalFactory.create_balanced_async(db, user_id, debit_account, credit_account)
    line = await BankStatementLineFactory.create_async(
        db, user_id=user_id, status=BankStatementStatus.MATCHED
    )
    db.add(
        ReconciliationLink(
            user_id=user_id,
            bank_statement_id=line.id,
            journal_id=journal.id,
            match_type=MatchType.MANUAL,
            matched_amount=line.amount,
        )
    )
    await db.commit()

    await delete_bank_statement(db, user_id, line.id)
    await db.commit()

    assert await _count_lines(db, user_id) == 0
    links = await db.execute(select(func.count()).select_from(ReconciliationLink))
    assert links.scalar_one() == 0


@pytest.mark.asyncio
async def test_delete_bank_statement_of_other_user_is_not_found(db, user_id, other_user_id) -> None:
    line = await BankStatementLineFactory.create_async(db, user_id=other_user_id)

    with pytest.raises(StatementNotFound):
        await delete_bank_statement(db, user_id, line.id)

    with pytest.raises(StatementNotFound):
        await delete_bank_statement(db, user_id, uuid4())
