# libs/audit_logger.py
from __future__ import annotations

import logging
import uuid
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from models.audit import Audit, AuditEventType

logger = logging.getLogger(__name__)

MAX_ACTOR_LENGTH = 255


def _coerce_event_type(event_type: Union[AuditEventType, str]) -> AuditEventType:
    try:
        return AuditEventType(event_type)
    except ValueError:
        logger.warning("Unknown audit event_type %r, recording as system", event_type)
        return AuditEventType.system


async def write_audit(
    *,
    db: AsyncSession,
    event_type: Union[AuditEventType, str],
    message: str,
    actor: Optional[str] = None,
    event_id: Optional[uuid.UUID] = None,
    commit: bool = False,
) -> Optional[uuid.UUID]:
    """
    Append a row to the audit trail inside the caller's transaction.

    The insert runs in a SAVEPOINT, so a failed audit write is logged and
    dropped while the caller's pending business changes stay intact.

    Args:
        db: session owned by the caller
        event_type: feedback / moderation / notification / survey / system
        message: what happened, e.g. "Status new -> closed"
        actor: operator email, or None for reporter-initiated events
        event_id: feedback id or pending entry id the event concerns
        commit: commit immediately (used by fire-and-forget notification records)

    Returns:
        The new log_id, or None when the row could not be written
    """
    row = Audit(
        log_id=uuid.uuid4(),
        actor=actor[:MAX_ACTOR_LENGTH] if actor else None,
        event_type=_coerce_event_type(event_type).value,
        event_id=event_id,
        message=(message or "").strip() or "(no message)",
    )

    try:
        async with db.begin_nested():
            db.add(row)
        if commit:
            await db.commit()
    except Exception:
        logger.exception("Audit write failed: %s %s event_id=%s", row.event_type, row.message, event_id)
        if commit:
            await db.rollback()
        return None

    return row.log_id
