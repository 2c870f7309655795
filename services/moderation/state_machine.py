"""
Moderation State Machine - operator-driven transitions and their side effects.

PendingEntry:        pending -> approved | rejected
FeedbackSubmission:  new -> in_review -> resolved -> closed (closed is terminal)

Transitions commit before any side effect runs. A failed directory promotion
or a failed case-closed notification is reported on the result and logged;
it never undoes the transition.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from common.errors import DuplicateEntryError, InvalidTransitionError, NotFoundError
from libs.audit_logger import write_audit
from models.audit import AuditEventType
from models.feedback import FeedbackSubmission
from models.pending_entry import PendingEntry
from services.feedback.feedback_factory import get_feedback_factory
from services.feedback.types import FeedbackStatus
from services.moderation.directory import DirectoryLookup
from services.moderation.pending_entry_factory import get_pending_entry_factory
from services.moderation.types import (
    DIRECTORY_BACKED_TYPES,
    EntryType,
    FacilityOwnershipType,
    PendingEntryStatus,
    PromotionOutcome,
)
from services.notification.dispatcher import NotificationDispatcher
from services.notification.intents import build_case_closed_intent

logger = logging.getLogger(__name__)

RESOLUTION_DECISIONS = (PendingEntryStatus.APPROVED, PendingEntryStatus.REJECTED)


@dataclass
class ResolutionResult:
    entry: PendingEntry
    promotion: PromotionOutcome = PromotionOutcome.NOT_APPLICABLE
    warning: Optional[str] = None


@dataclass
class StatusUpdateResult:
    submission: FeedbackSubmission
    previous_status: str
    # None when no case-closed notification was attempted
    case_closed_sent: Optional[bool] = None


class ModerationStateMachine:
    def __init__(
        self,
        db: AsyncSession,
        directory: DirectoryLookup,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.db = db
        self.directory = directory
        self.dispatcher = dispatcher
        self.entries = get_pending_entry_factory()
        self.feedback = get_feedback_factory()

    async def resolve_pending_entry(
        self,
        entry_id: uuid.UUID,
        decision: str,
        actor: str,
    ) -> ResolutionResult:
        """
        Approve or reject a pending entry.

        Re-applying the decision an entry already carries is a retry: an
        approval re-runs the promotion check, a rejection does nothing.
        Flipping an already-resolved decision is refused.

        Raises:
            NotFoundError: unknown entry id
            InvalidTransitionError: unknown decision, or a flip of a resolved entry
        """
        try:
            target = PendingEntryStatus(decision)
        except ValueError:
            raise InvalidTransitionError(f"Unknown moderation decision '{decision}'")
        if target not in RESOLUTION_DECISIONS:
            raise InvalidTransitionError("Pending entries can only be approved or rejected")

        entry = await self.entries.get_by_id(self.db, entry_id)
        if entry is None:
            raise NotFoundError("Pending entry")

        current = PendingEntryStatus(entry.status)
        if current == target:
            logger.info("Pending entry %s already %s; treating as retry", entry.id, target.value)
            if target == PendingEntryStatus.APPROVED:
                return await self._promote(entry)
            return ResolutionResult(entry=entry)

        if current != PendingEntryStatus.PENDING:
            raise InvalidTransitionError(
                f"Pending entry {entry.id} is already {current.value} and cannot become {target.value}"
            )

        await self.entries.mark_resolved(self.db, entry, target, actor)
        await write_audit(
            db=self.db,
            event_type=AuditEventType.moderation,
            message=f"{entry.entry_type} '{entry.value}' {target.value}",
            actor=actor,
            event_id=entry.id,
        )
        await self.db.commit()
        await self.db.refresh(entry)
        logger.info("Pending entry %s %s by %s", entry.id, target.value, actor)

        if target == PendingEntryStatus.APPROVED:
            return await self._promote(entry)
        return ResolutionResult(entry=entry)

    async def _promote(self, entry: PendingEntry) -> ResolutionResult:
        """Write an approved directory-backed entry into the directory if still absent."""
        if EntryType(entry.entry_type) not in DIRECTORY_BACKED_TYPES:
            return ResolutionResult(entry=entry)
        if not (entry.region and entry.sub_region):
            return ResolutionResult(entry=entry)

        try:
            if await self.directory.exists(entry.value, entry.region, entry.sub_region):
                return ResolutionResult(entry=entry, promotion=PromotionOutcome.ALREADY_PRESENT)
            await self.directory.insert(
                entry.value,
                entry.region,
                entry.sub_region,
                FacilityOwnershipType.from_facility_type(entry.facility_type),
                source_entry_id=entry.id,
            )
        except DuplicateEntryError:
            logger.info("Facility for pending entry %s was added concurrently", entry.id)
            return ResolutionResult(entry=entry, promotion=PromotionOutcome.ALREADY_PRESENT)
        except Exception as e:
            logger.exception("Directory promotion failed for pending entry %s", entry.id)
            return ResolutionResult(
                entry=entry,
                promotion=PromotionOutcome.FAILED,
                warning=f"Approved, but the directory could not be updated: {e}",
            )

        return ResolutionResult(entry=entry, promotion=PromotionOutcome.PROMOTED)

    async def update_submission_status(
        self,
        feedback_id: uuid.UUID,
        new_status: str,
        actor: str,
        admin_notes: Optional[str] = None,
        assigned_department: Optional[str] = None,
    ) -> StatusUpdateResult:
        """
        Move a submission to ``new_status``.

        Entering ``closed`` from any other status sends the reporter exactly
        one case-closed notification, when they can be reached.

        Raises:
            NotFoundError: unknown feedback id
            InvalidTransitionError: unknown status, or leaving ``closed``
        """
        try:
            target = FeedbackStatus(new_status)
        except ValueError:
            raise InvalidTransitionError(f"Unknown feedback status '{new_status}'")

        submission = await self.feedback.get_by_id(self.db, feedback_id)
        if submission is None:
            raise NotFoundError("Feedback")

        previous_status = submission.status
        if previous_status == FeedbackStatus.CLOSED.value and target != FeedbackStatus.CLOSED:
            raise InvalidTransitionError(
                f"Feedback {submission.reference_code} is closed and cannot move to {target.value}"
            )

        submission.status = target.value
        if admin_notes is not None:
            submission.admin_notes = admin_notes
        if assigned_department is not None:
            submission.assigned_department = assigned_department

        await write_audit(
            db=self.db,
            event_type=AuditEventType.feedback,
            message=f"Status {previous_status} -> {target.value}",
            actor=actor,
            event_id=submission.id,
        )
        await self.db.commit()
        await self.db.refresh(submission)
        logger.info(
            "Feedback %s status %s -> %s by %s",
            submission.reference_code,
            previous_status,
            target.value,
            actor,
        )

        case_closed_sent = None
        if target == FeedbackStatus.CLOSED and previous_status != FeedbackStatus.CLOSED.value:
            case_closed_sent = await self._notify_case_closed(submission)

        return StatusUpdateResult(
            submission=submission,
            previous_status=previous_status,
            case_closed_sent=case_closed_sent,
        )

    async def _notify_case_closed(self, submission: FeedbackSubmission) -> Optional[bool]:
        intent = build_case_closed_intent(submission)
        if intent is None:
            return None

        try:
            outcomes = await self.dispatcher.dispatch([intent])
        except Exception:
            logger.exception("Case-closed notification failed for %s", submission.reference_code)
            return False

        delivered = bool(outcomes) and outcomes[0].delivered
        if not delivered:
            logger.warning(
                "Case-closed notification for %s not delivered: %s",
                submission.reference_code,
                outcomes[0].error if outcomes else "no outcome",
            )
        await write_audit(
            db=self.db,
            event_type=AuditEventType.notification,
            message=f"case_closed {'delivered' if delivered else 'failed'}",
            event_id=submission.id,
            commit=True,
        )
        return delivered
