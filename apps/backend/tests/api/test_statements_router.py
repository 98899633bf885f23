"""Bank statement API router tests.

Endpoints:
- POST /bank-statements/import - Import parsed rows
- POST /bank-statements/import/csv - Upload a CSV export
- GET /bank-statements - List lines, optionally by status
- DELETE /bank-statements/{statement_id} - Delete a line and its link
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi import status

from billing_ledger.models import BankStatementStatus
from billing_ledger.routers import statements as statements_router
from billing_ledger.services.errors import StatementQueryFailed
from tests.factories import BankStatementLineFactory

ROWS = [
    {"date": "2024-01-15", "description": "Payment received", "credit": "1000", "transactionId": "TXN-001"},
    {"date": "2024-01-16", "description": "Office rent", "debit": "2000", "balance": "3000"},
]


@pytest.mark.asyncio
async def test_import_rows(client) -> None:
    response = await client.post(
        "/bank-statements/import", json={"rows": ROWS, "source_file_name": "jan.csv"}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data == {
        "success": True,
        "imported_count": 2,
        "skipped_count": 0,
        "error_count": 0,
        "errors": [],
    }

    listing = (await client.get("/bank-statements")).json()
    assert listing["total"] == 2
    assert {item["transaction_id"] for item in listing["items"]} == {"TXN-001", "2024-01-16-2-2000"}
    assert all(item["source_file"] == "jan.csv" for item in listing["items"])


@pytest.mark.asyncio
async def test_import_rows_twice_skips_duplicates(client) -> None:
    await client.post("/bank-statements/import", json={"rows": ROWS})

    response = await client.post("/bank-statements/import", json={"rows": ROWS})

    data = response.json()
    assert data["success"] is True
    assert data["imported_count"] == 0
    assert data["skipped_count"] == 2
    assert data["errors"] == ["Some transactions already exist and were skipped"]


@pytest.mark.asyncio
async def test_import_rows_with_no_valid_rows(client) -> None:
    response = await client.post(
        "/bank-statements/import", json={"rows": [{"date": "", "description": "x"}]}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is False
    assert data["errors"] == [
        "Row 1: Missing required fields (date or description)",
        "No valid bank statements to import",
    ]


@pytest.mark.asyncio
async def test_import_rows_batch_too_large(client, monkeypatch) -> None:
    from billing_ledger.config import settings

    monkeypatch.setattr(settings, "import_max_rows", 1)

    response = await client.post("/bank-statements/import", json={"rows": ROWS})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Import batch too large" in response.json()["detail"]


@pytest.mark.asyncio
async def test_import_csv_upload(client) -> None:
    content = (
        "Date,Description,Debit,Credit,Balance\n"
        "2024-01-15,Payment from client,0,1000,5000\n"
        "2024-01-16,Office rent,2000,0,3000\n"
    ).encode()

    response = await client.post(
        "/bank-statements/import/csv",
        files={"file": ("hdfc.csv", content, "text/csv")},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["imported_count"] == 2

    listing = (await client.get("/bank-statements")).json()
    assert {item["source_file"] for item in listing["items"]} == {"hdfc.csv"}


@pytest.mark.asyncio
async def test_import_csv_invalid_header(client) -> None:
    response = await client.post(
        "/bank-statements/import/csv",
        files={"file": ("bad.csv", b"Invalid,Header\n", "text/csv")},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "CSV must contain Date and Description columns"


@pytest.mark.asyncio
async def test_import_csv_not_utf8(client) -> None:
    response = await client.post(
        "/bank-statements/import/csv",
        files={"file": ("latin.csv", "Date,Description\n2024-01-15,Café\n".encode("latin-1"), "text/csv")},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "CSV file must be UTF-8 encoded"


@pytest.mark.asyncio
async def test_import_csv_too_large(client, monkeypatch) -> None:
    monkeypatch.setattr(statements_router, "MAX_UPLOAD_BYTES", 16)

    response = await client.post(
        "/bank-statements/import/csv",
        files={"file": ("big.csv", b"Date,Description\n2024-01-15,x\n", "text/csv")},
    )

    assert response.status_code == status.HTTP_413_CONTENT_TOO_LARGE


@pytest.mark.asyncio
async def test_list_filters_by_status(client, db, user_id, other_user_id) -> None:
    await BankStatementLineFactory.create_async(db, user_id=user_id)
    await BankStatementLineFactory.create_async(
        db, user_id=user_id, status=BankStatementStatus.MATCHED, credit=Decimal("12.50")
    )
    await BankStatementLineFactory.create_async(db, user_id=other_user_id)
    await db.commit()

    everything = (await client.get("/bank-statements")).json()
    matched = (await client.get("/bank-statements", params={"status": "matched"})).json()

    assert everything["total"] == 2
    assert matched["total"] == 1
    assert matched["items"][0]["status"] == "matched"
    assert Decimal(matched["items"][0]["credit"]) == Decimal("12.50")


@pytest.mark.asyncio
async def test_list_rejects_unknown_status(client) -> None:
    response = await client.get("/bank-statements", params={"status": "reconciled"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_store_failure_is_500(client) -> None:
    failure = StatementQueryFailed("Failed to fetch bank statements: Database connection failed")

    with patch(
        "billing_ledger.routers.statements.get_bank_statements",
        new=AsyncMock(side_effect=failure),
    ):
        response = await client.get("/bank-statements")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"].startswith("Failed to fetch bank statements:")


@pytest.mark.asyncio
async def test_delete_statement(client, db, user_id) -> None:
    line = await BankStatementLineFactory.create_async(db, user_id=user_id)
    await db.commit()

    response = await client.delete(f"/bank-statements/{line.id}")

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert (await client.get("/bank-statements")).json()["total"] == 0


@pytest.mark.asyncio
async def test_delete_statement_not_found(client, db, other_user_id) -> None:
    foreign = await BankStatementLineFactory.create_async(db, user_id=other_user_id)
    await db.commit()

    assert (await client.delete(f"/bank-statements/{foreign.id}")).status_code == status.HTTP_404_NOT_FOUND
    assert (await client.delete(f"/bank-statements/{uuid4()}")).status_code == status.HTTP_404_NOT_FOUND
