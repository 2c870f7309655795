"""
Feedback Intake Pipeline.

Persists a submission, queues its unrecognised free-text values for
moderation, and fans out the creation notifications. The submission commit
is the durability boundary: once it succeeds, ``submit`` returns a receipt
no matter what the moderation queue or the notification channels do.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from common.constants import REFERENCE_CODE_MAX_ATTEMPTS
from common.errors import ReferenceCodeExhaustedError
from libs.audit_logger import write_audit
from models.audit import AuditEventType
from models.feedback import FeedbackSubmission
from services.feedback import identifiers
from services.feedback.candidates import ModerationCandidate, derive_candidates
from services.feedback.feedback_factory import get_feedback_factory
from services.feedback.schemas import FeedbackSubmitRequest
from services.moderation.directory import DirectoryLookup
from services.moderation.pending_entry_factory import get_pending_entry_factory
from services.notification.dispatcher import NotificationDispatcher, summarize
from services.notification.intents import build_submission_intents
from services.notification.models import NotificationIntent, NotificationSummary

logger = logging.getLogger(__name__)


@dataclass
class SubmissionReceipt:
    feedback_id: uuid.UUID
    reference_code: str
    status: str
    created_at: datetime
    pending_entries_created: int
    notifications: NotificationSummary


def _unique(candidates: List[ModerationCandidate]) -> List[ModerationCandidate]:
    seen = set()
    unique = []
    for candidate in candidates:
        if candidate.identity in seen:
            continue
        seen.add(candidate.identity)
        unique.append(candidate)
    return unique


class FeedbackIntakePipeline:
    def __init__(
        self,
        db: AsyncSession,
        directory: DirectoryLookup,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.db = db
        self.directory = directory
        self.dispatcher = dispatcher
        self.feedback = get_feedback_factory()
        self.entries = get_pending_entry_factory()

    async def submit(self, payload: FeedbackSubmitRequest) -> SubmissionReceipt:
        """
        Accept a feedback submission.

        Raises:
            ReferenceCodeExhaustedError: every minted reference code collided
            SQLAlchemyError: the submission itself could not be stored
        """
        submission = await self._persist(payload)

        # Snapshot before any later rollback expires the instance
        receipt_fields = dict(
            feedback_id=submission.id,
            reference_code=submission.reference_code,
            status=submission.status,
            created_at=submission.created_at,
        )
        intents = build_submission_intents(submission)

        created = await self._enqueue_candidates(submission)
        notifications = await self._notify(
            receipt_fields["feedback_id"], receipt_fields["reference_code"], intents
        )

        return SubmissionReceipt(
            **receipt_fields,
            pending_entries_created=created,
            notifications=notifications,
        )

    async def _persist(self, payload: FeedbackSubmitRequest) -> FeedbackSubmission:
        fields = payload.model_dump()
        for attempt in range(1, REFERENCE_CODE_MAX_ATTEMPTS + 1):
            reference_code = identifiers.mint_reference_code()
            try:
                async with self.db.begin_nested():
                    submission = await self.feedback.create_submission(
                        self.db,
                        reference_code=reference_code,
                        survey_token=identifiers.mint_survey_token(),
                        **fields,
                    )
            except IntegrityError:
                logger.warning(
                    "Reference code %s collided (attempt %d/%d); regenerating",
                    reference_code,
                    attempt,
                    REFERENCE_CODE_MAX_ATTEMPTS,
                )
                continue

            await write_audit(
                db=self.db,
                event_type=AuditEventType.feedback,
                message=f"Feedback {reference_code} submitted ({submission.feedback_type})",
                event_id=submission.id,
            )
            await self.db.commit()
            logger.info("Feedback %s stored (%s)", reference_code, submission.feedback_type)
            return submission

        await self.db.rollback()
        raise ReferenceCodeExhaustedError(
            f"Could not mint a unique reference code after {REFERENCE_CODE_MAX_ATTEMPTS} attempts"
        )

    async def _enqueue_candidates(self, submission: FeedbackSubmission) -> int:
        reference_code = submission.reference_code
        try:
            candidates = _unique(await derive_candidates(submission, self.directory))
            if not candidates:
                return 0

            existing = await self.entries.find_existing_keys(self.db, candidates)
            fresh = [c for c in candidates if c.identity not in existing]
            for candidate in candidates:
                if candidate.identity in existing:
                    logger.info(
                        "%s '%s' already queued or approved; not re-queued for %s",
                        candidate.entry_type.value,
                        candidate.value,
                        reference_code,
                    )

            created = await self.entries.create_many(self.db, fresh, feedback_id=submission.id)
            await self.db.commit()
        except Exception:
            logger.exception("Could not queue moderation candidates for %s", reference_code)
            await self._safe_rollback(reference_code)
            return 0

        if created:
            logger.info("Queued %d pending entries for %s", len(created), reference_code)
        return len(created)

    async def _notify(
        self,
        feedback_id: uuid.UUID,
        reference_code: str,
        intents: List[NotificationIntent],
    ) -> NotificationSummary:
        try:
            outcomes = await self.dispatcher.dispatch(intents)
        except Exception:
            logger.exception("Notification dispatch failed for %s", reference_code)
            outcomes = []

        summary = summarize(outcomes)
        try:
            await self.feedback.update_notification_flags(
                self.db,
                feedback_id,
                confirmation_sent=summary.confirmation_sent,
                followup_sent=summary.followup_sent,
            )
            await write_audit(
                db=self.db,
                event_type=AuditEventType.notification,
                message=f"Creation notifications {summary.status.value}",
                event_id=feedback_id,
            )
            await self.db.commit()
        except Exception:
            logger.exception("Could not persist notification flags for %s", reference_code)
            await self._safe_rollback(reference_code)

        return summary

    async def _safe_rollback(self, reference_code: str) -> None:
        try:
            await self.db.rollback()
        except Exception:
            logger.exception("Rollback failed for %s", reference_code)
