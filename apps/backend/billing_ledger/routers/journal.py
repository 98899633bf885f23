"""Journal posting API router."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from billing_ledger.deps import CurrentUserId, DbSession
from billing_ledger.models import JournalStatus
from billing_ledger.schemas import (
    CreateJournalFromBankStatement,
    JournalCreatedResponse,
    JournalDraft,
    JournalListResponse,
    JournalResponse,
    VoidJournalRequest,
)
from billing_ledger.services import (
    JournalCreationFailed,
    JournalLineCreationFailed,
    JournalNotFound,
    ValidationError,
    create_journal,
    create_journal_from_bank_statement,
    get_journal,
    list_journals,
    post_journal,
    void_journal,
)
from billing_ledger.utils import raise_bad_request, raise_internal_error, raise_not_found

router = APIRouter(prefix="/journals", tags=["journals"])


@router.post(
    "/from-bank-statement",
    response_model=JournalCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_from_bank_statement(
    payload: CreateJournalFromBankStatement,
    db: DbSession,
    user_id: CurrentUserId,
) -> JournalCreatedResponse:
    """Post a two-line journal explaining a statement line."""
    try:
        journal_id = await create_journal_from_bank_statement(db, user_id, payload)
    except ValidationError as exc:
        raise_bad_request(str(exc), cause=exc)
    except (JournalCreationFailed, JournalLineCreationFailed) as exc:
        await db.rollback()
        raise_internal_error(str(exc), cause=exc)

    await db.commit()
    return JournalCreatedResponse(journal_id=journal_id)


@router.post("", response_model=JournalResponse, status_code=status.HTTP_201_CREATED)
async def create_journal_endpoint(
    payload: JournalDraft,
    db: DbSession,
    user_id: CurrentUserId,
) -> JournalResponse:
    """Post a balanced journal in draft status."""
    try:
        journal = await create_journal(db, user_id, payload)
    except ValidationError as exc:
        raise_bad_request(str(exc), cause=exc)
    except (JournalCreationFailed, JournalLineCreationFailed) as exc:
        await db.rollback()
        raise_internal_error(str(exc), cause=exc)

    await db.commit()
    await db.refresh(journal, ["lines"])
    return JournalResponse.model_validate(journal)


@router.get("", response_model=JournalListResponse)
async def list_journals_endpoint(
    db: DbSession,
    user_id: CurrentUserId,
    status_filter: JournalStatus | None = Query(default=None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
) -> JournalListResponse:
    """List journals with pagination."""
    journals, total = await list_journals(
        db, user_id, status_filter, limit=page_size, offset=(page - 1) * page_size
    )
    items = [JournalResponse.model_validate(j) for j in journals]
    return JournalListResponse(items=items, total=total)


@router.get("/{journal_id}", response_model=JournalResponse)
async def get_journal_endpoint(journal_id: UUID, db: DbSession, user_id: CurrentUserId) -> JournalResponse:
    try:
        journal = await get_journal(db, user_id, journal_id)
    except JournalNotFound as exc:
        raise_not_found(str(exc), cause=exc)
    return JournalResponse.model_validate(journal)


@router.post("/{journal_id}/post", response_model=JournalResponse)
async def post_journal_endpoint(journal_id: UUID, db: DbSession, user_id: CurrentUserId) -> JournalResponse:
    """Post a journal (draft -> posted)."""
    try:
        journal = await post_journal(db, user_id, journal_id)
    except JournalNotFound as exc:
        raise_not_found(str(exc), cause=exc)
    except ValidationError as exc:
        raise_bad_request(str(exc), cause=exc)

    await db.commit()
    return JournalResponse.model_validate(journal)


@router.post("/{journal_id}/void", response_model=JournalResponse)
async def void_journal_endpoint(
    journal_id: UUID,
    void_request: VoidJournalRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> JournalResponse:
    """Void a journal."""
    try:
        journal = await void_journal(db, user_id, journal_id, void_request.reason)
    except JournalNotFound as exc:
        raise_not_found(str(exc), cause=exc)
    except ValidationError as exc:
        raise_bad_request(str(exc), cause=exc)

    await db.commit()
    return JournalResponse.model_validate(journal)
