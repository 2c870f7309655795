"""
Pending Entry Factory - Database operations for the moderation queue.

Duplicate suppression is two-layered: ``find_existing_keys`` filters out
candidates already pending or approved, and the partial unique index on
(entry_type, dedup_key) rejects whatever a concurrent request slips past
that check. Rejected inserts are skipped, never retried.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.pending_entry import PendingEntry
from services.feedback.candidates import ModerationCandidate
from services.moderation.types import ACTIVE_ENTRY_STATUSES, EntryType, PendingEntryStatus

logger = logging.getLogger(__name__)


class PendingEntryFactory:
    """
    Store for moderation queue rows.

    Inserts run one SAVEPOINT per row so a lost dedup race skips that row
    without undoing the rest of the batch.
    """

    _instance: Optional["PendingEntryFactory"] = None

    def __new__(cls):
        """Singleton pattern - ensures only one factory instance exists."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def find_existing_keys(
        self,
        db: AsyncSession,
        candidates: Iterable[ModerationCandidate],
    ) -> Set[Tuple[str, str]]:
        """
        Return the (entry_type, dedup_key) pairs already pending or approved.

        Args:
            db: Database session
            candidates: Candidates to look up

        Returns:
            Set of identities present in the active moderation queue
        """
        candidates = list(candidates)
        if not candidates:
            return set()

        clauses = [
            and_(
                PendingEntry.entry_type == c.entry_type.value,
                PendingEntry.dedup_key == c.dedup_key,
            )
            for c in candidates
        ]
        result = await db.execute(
            select(PendingEntry.entry_type, PendingEntry.dedup_key).where(
                PendingEntry.status.in_(ACTIVE_ENTRY_STATUSES),
                or_(*clauses),
            )
        )
        return {(row.entry_type, row.dedup_key) for row in result.all()}

    async def create_many(
        self,
        db: AsyncSession,
        candidates: Iterable[ModerationCandidate],
        *,
        feedback_id: Optional[uuid.UUID] = None,
    ) -> List[PendingEntry]:
        """
        Insert candidates as pending entries, one SAVEPOINT per row.

        The caller commits. Rows rejected by the unique index are skipped.

        Returns:
            The entries actually inserted
        """
        created = []
        for candidate in candidates:
            entry = PendingEntry(
                id=uuid.uuid4(),
                entry_type=candidate.entry_type.value,
                value=candidate.value,
                region=candidate.region,
                sub_region=candidate.sub_region,
                facility_type=candidate.facility_type,
                dedup_key=candidate.dedup_key,
                status=PendingEntryStatus.PENDING.value,
                feedback_id=feedback_id,
            )
            try:
                async with db.begin_nested():
                    db.add(entry)
            except IntegrityError:
                logger.info(
                    "Pending %s '%s' was created concurrently; skipping",
                    candidate.entry_type.value,
                    candidate.value,
                )
                continue
            created.append(entry)
        return created

    async def get_by_id(self, db: AsyncSession, entry_id: uuid.UUID) -> Optional[PendingEntry]:
        result = await db.execute(select(PendingEntry).where(PendingEntry.id == entry_id))
        return result.scalar_one_or_none()

    async def mark_resolved(
        self,
        db: AsyncSession,
        entry: PendingEntry,
        status: PendingEntryStatus,
        actor: str,
    ) -> PendingEntry:
        """Record a decision on ``entry``; the caller commits."""
        entry.status = status.value
        entry.approved_by = actor
        entry.approved_at = datetime.now(timezone.utc)
        await db.flush()
        return entry

    async def approved_values(self, db: AsyncSession, entry_type: EntryType) -> List[str]:
        """Distinct approved values of one category, alphabetically (dropdown merge)."""
        result = await db.execute(
            select(PendingEntry.value)
            .where(
                PendingEntry.entry_type == EntryType(entry_type).value,
                PendingEntry.status == PendingEntryStatus.APPROVED.value,
            )
            .distinct()
            .order_by(PendingEntry.value)
        )
        return list(result.scalars().all())


# Global factory instance
_pending_entry_factory: Optional[PendingEntryFactory] = None


def get_pending_entry_factory() -> PendingEntryFactory:
    """
    Get or create the global pending entry factory instance.

    Returns:
        PendingEntryFactory instance
    """
    global _pending_entry_factory
    if _pending_entry_factory is None:
        _pending_entry_factory = PendingEntryFactory()
    return _pending_entry_factory
