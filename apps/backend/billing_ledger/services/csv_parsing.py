"""Bank statement CSV parsing.

The header aliases below are part of the import contract: statements exported
from the supported banks must keep parsing, so aliases may be added but never
removed.
"""

import csv
import io

from billing_ledger.logger import get_logger
from billing_ledger.schemas.statement import BankStatementImportData
from billing_ledger.services.errors import InvalidCSVFormat

logger = get_logger(__name__)

DATE_ALIASES = ("date", "transaction date", "txn date", "value date", "posting date")
DESCRIPTION_ALIASES = ("description", "narration", "particulars", "details", "remarks")
DEBIT_ALIASES = ("debit", "withdrawal", "withdrawals", "debit amount", "withdrawal amount")
CREDIT_ALIASES = ("credit", "deposit", "deposits", "credit amount", "deposit amount")
BALANCE_ALIASES = ("balance", "running balance", "closing balance")
TRANSACTION_ID_ALIASES = (
    "transaction id",
    "transaction_id",
    "txn id",
    "reference",
    "ref no",
    "reference number",
)


def _normalize_header(value: str) -> str:
    return " ".join(value.strip().lstrip("\ufeff").lower().split())


def find_column(headers: list[str], aliases: tuple[str, ...]) -> int | None:
    """Return the index of the first header matching any alias (case-insensitive)."""
    normalized = [_normalize_header(h) for h in headers]
    for alias in aliases:
        if alias in normalized:
            return normalized.index(alias)
    return None


def _cell(values: list[str], index: int | None) -> str | None:
    if index is None or index >= len(values):
        return None
    text = values[index].strip()
    return text or None


def parse_bank_statement_csv(content: str | bytes) -> list[BankStatementImportData]:
    """Parse a bank statement CSV into raw import rows.

    Raises:
        InvalidCSVFormat: If there is no data row, or the Date/Description
            columns cannot be located.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig")

    lines = content.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if len(lines) < 2:
        raise InvalidCSVFormat("CSV file must contain at least a header and one data row")

    reader = csv.reader(io.StringIO("\n".join(lines)))
    try:
        headers = next(reader)
    except StopIteration as exc:
        raise InvalidCSVFormat("CSV file must contain at least a header and one data row") from exc

    date_idx = find_column(headers, DATE_ALIASES)
    description_idx = find_column(headers, DESCRIPTION_ALIASES)
    if date_idx is None or description_idx is None:
        raise InvalidCSVFormat("CSV must contain Date and Description columns")

    debit_idx = find_column(headers, DEBIT_ALIASES)
    credit_idx = find_column(headers, CREDIT_ALIASES)
    balance_idx = find_column(headers, BALANCE_ALIASES)
    txn_id_idx = find_column(headers, TRANSACTION_ID_ALIASES)

    rows: list[BankStatementImportData] = []
    skipped = 0
    for values in reader:
        if not any(v.strip() for v in values):
            continue
        if len(values) < len(headers):
            skipped += 1
            continue

        date_value = _cell(values, date_idx)
        description = _cell(values, description_idx)
        if not date_value or not description:
            skipped += 1
            continue

        rows.append(
            BankStatementImportData(
                date=date_value,
                description=description,
                debit=_cell(values, debit_idx),
                credit=_cell(values, credit_idx),
                balance=_cell(values, balance_idx),
                transaction_id=_cell(values, txn_id_idx),
            )
        )

    if skipped:
        logger.info("Skipped incomplete CSV rows", skipped=skipped, parsed=len(rows))
    return rows
