"""
Survey Service - follow-up satisfaction survey keyed by the survey token.

At most one response is stored per submission. The pre-check gives the
friendly error; the unique ``feedback_id`` column catches concurrent
duplicates.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from common.errors import InvalidSurveyTokenError, SurveyAlreadySubmittedError
from libs.audit_logger import write_audit
from models.audit import AuditEventType
from models.survey import SurveyResponse
from services.feedback.feedback_factory import get_feedback_factory
from services.survey.schemas import SurveySubmitRequest

logger = logging.getLogger(__name__)


@dataclass
class TokenValidation:
    valid: bool
    already_submitted: bool = False
    feedback_id: Optional[uuid.UUID] = None


class SurveyService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.feedback = get_feedback_factory()

    async def _existing_response_id(self, feedback_id: uuid.UUID) -> Optional[uuid.UUID]:
        result = await self.db.execute(
            select(SurveyResponse.id).where(SurveyResponse.feedback_id == feedback_id)
        )
        return result.scalar_one_or_none()

    async def validate_token(self, token: str) -> TokenValidation:
        submission = await self.feedback.get_by_survey_token(self.db, token)
        if submission is None:
            return TokenValidation(valid=False)
        existing = await self._existing_response_id(submission.id)
        return TokenValidation(
            valid=True,
            already_submitted=existing is not None,
            feedback_id=submission.id,
        )

    async def submit(self, request: SurveySubmitRequest) -> SurveyResponse:
        """
        Store a survey response for the submission owning ``request.token``.

        Raises:
            InvalidSurveyTokenError: no submission carries the token
            SurveyAlreadySubmittedError: a response already exists
        """
        submission = await self.feedback.get_by_survey_token(self.db, request.token)
        if submission is None:
            raise InvalidSurveyTokenError()

        feedback_id = submission.id
        if await self._existing_response_id(feedback_id) is not None:
            raise SurveyAlreadySubmittedError()

        response = SurveyResponse(
            id=uuid.uuid4(),
            feedback_id=feedback_id,
            **request.model_dump(exclude={"token"}),
        )
        self.db.add(response)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise SurveyAlreadySubmittedError() from e

        await write_audit(
            db=self.db,
            event_type=AuditEventType.survey,
            message="Survey response submitted",
            event_id=feedback_id,
        )
        await self.db.commit()
        logger.info("Survey response stored for feedback %s", feedback_id)
        return response
