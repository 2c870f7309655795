"""
Feedback Factory - Database operations for feedback submissions.

Provides factory pattern for creating and managing feedback records in the database.
"""

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.feedback import FeedbackSubmission
from services.feedback.identifiers import normalize_reference_code
from services.feedback.types import FeedbackStatus, FeedbackType, ReporterType

logger = logging.getLogger(__name__)


class FeedbackFactory:
    """
    Stateless store for FeedbackSubmission rows.

    Shared as a process-wide singleton; every method takes the caller's
    session, so commit and rollback stay with the caller.
    """

    _instance: Optional["FeedbackFactory"] = None

    def __new__(cls):
        """Singleton pattern - ensures only one factory instance exists."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def create_submission(
        self,
        db: AsyncSession,
        *,
        reference_code: str,
        survey_token: str,
        feedback_type: FeedbackType,
        description: str,
        anonymous: bool = False,
        reporter_name: Optional[str] = None,
        reporter_email: Optional[str] = None,
        reporter_phone: Optional[str] = None,
        reporter_type: Optional[str] = None,
        facility_name: Optional[str] = None,
        facility_region: Optional[str] = None,
        facility_sub_region: Optional[str] = None,
        facility_type: Optional[str] = None,
        department: Optional[str] = None,
        location: Optional[str] = None,
        issue_classification: Optional[str] = None,
        issue_classification_other: Optional[str] = None,
        severity: Optional[int] = None,
        incident_date: Optional[date] = None,
        staff_involved: Optional[str] = None,
        additional_comments: Optional[str] = None,
        locale: str = "en",
    ) -> FeedbackSubmission:
        """
        Create a new feedback submission in the database.

        Anonymous submissions never store reporter contact details.

        Args:
            db: Database session
            reference_code: Human-facing reference code
            survey_token: Opaque survey token
            feedback_type: Feedback type enum
            description: Free-text description of the experience

        Returns:
            FeedbackSubmission: Created (flushed, uncommitted) record

        Raises:
            IntegrityError: If reference_code or survey_token already exists
        """
        if anonymous:
            reporter_name = reporter_email = reporter_phone = None

        submission = FeedbackSubmission(
            id=uuid.uuid4(),
            reference_code=reference_code,
            survey_token=survey_token,
            anonymous=anonymous,
            reporter_name=reporter_name,
            reporter_email=reporter_email,
            reporter_phone=reporter_phone,
            reporter_type=ReporterType(reporter_type).value if reporter_type else None,
            feedback_type=FeedbackType(feedback_type).value,
            facility_name=facility_name,
            facility_region=facility_region,
            facility_sub_region=facility_sub_region,
            facility_type=facility_type,
            department=department,
            location=location,
            issue_classification=issue_classification,
            issue_classification_other=issue_classification_other,
            description=description,
            severity=severity,
            incident_date=incident_date,
            staff_involved=staff_involved,
            additional_comments=additional_comments,
            locale=locale or "en",
            status=FeedbackStatus.NEW.value,
        )

        db.add(submission)
        await db.flush()

        return submission

    async def get_by_id(
        self,
        db: AsyncSession,
        feedback_id: uuid.UUID,
    ) -> Optional[FeedbackSubmission]:
        """
        Retrieve a feedback submission by ID.

        Args:
            db: Database session
            feedback_id: UUID of the submission to retrieve

        Returns:
            FeedbackSubmission if found, None otherwise
        """
        result = await db.execute(select(FeedbackSubmission).where(FeedbackSubmission.id == feedback_id))
        return result.scalar_one_or_none()

    async def get_by_reference_code(
        self,
        db: AsyncSession,
        reference_code: str,
    ) -> Optional[FeedbackSubmission]:
        result = await db.execute(
            select(FeedbackSubmission).where(
                func.upper(FeedbackSubmission.reference_code) == normalize_reference_code(reference_code)
            )
        )
        return result.scalar_one_or_none()

    async def get_by_survey_token(
        self,
        db: AsyncSession,
        survey_token: str,
    ) -> Optional[FeedbackSubmission]:
        result = await db.execute(
            select(FeedbackSubmission).where(FeedbackSubmission.survey_token == survey_token)
        )
        return result.scalar_one_or_none()

    async def update_notification_flags(
        self,
        db: AsyncSession,
        feedback_id: uuid.UUID,
        *,
        confirmation_sent: bool,
        followup_sent: bool,
    ) -> None:
        """Record which reporter notifications went out; the caller commits."""
        await db.execute(
            update(FeedbackSubmission)
            .where(FeedbackSubmission.id == feedback_id)
            .values(confirmation_sent=confirmation_sent, followup_sent=followup_sent)
            .execution_options(synchronize_session=False)
        )


# Global factory instance
_feedback_factory: Optional[FeedbackFactory] = None


def get_feedback_factory() -> FeedbackFactory:
    """
    Get or create the global feedback factory instance.

    Returns:
        FeedbackFactory instance
    """
    global _feedback_factory
    if _feedback_factory is None:
        _feedback_factory = FeedbackFactory()
    return _feedback_factory
