"""Best-effort audit trail.

Audit writes never affect the primary operation: a failure is logged and
reported through the returned ``SideEffectResult`` instead of raised.
"""

from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from billing_ledger.logger import get_logger, log_exception
from billing_ledger.models import AuditLog

logger = get_logger(__name__)


class SideEffectResult(str, Enum):
    COMMITTED = "committed"
    BEST_EFFORT_FAILED = "best_effort_failed"


async def record_audit_event(
    db: AsyncSession,
    *,
    user_id: UUID,
    action: str,
    entity_type: str,
    entity_id: UUID | None = None,
    details: dict[str, Any] | None = None,
) -> SideEffectResult:
    """Write an audit row inside its own savepoint."""
    try:
        async with db.begin_nested():
            db.add(
                AuditLog(
                    user_id=user_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    details=details,
                )
            )
    except SQLAlchemyError as exc:
        log_exception(
            logger,
            exc,
            "Audit event not recorded",
            level="warning",
            include_traceback=False,
            user_id=str(user_id),
            action=action,
            entity_id=str(entity_id) if entity_id else None,
        )
        return SideEffectResult.BEST_EFFORT_FAILED
    return SideEffectResult.COMMITTED
