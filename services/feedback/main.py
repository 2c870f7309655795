# Run:
# uvicorn services.feedback.main:app --host 0.0.0.0 --port 20004 --reload
# Docs: http://127.0.0.1:20004/docs

import logging
import os
import uuid
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, Header, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

# Load environment variables from .env file
load_dotenv()

from common.constants import ELEVATED_OPERATOR_ROLES
from common.errors import NotFoundError, PermissionDeniedError
from libs.db import get_db
from libs.fastapi_service import FastAPIServiceFactory, ServiceAppConfig
from models.operator import Operator
from services.feedback.feedback_factory import get_feedback_factory
from services.feedback.intake import FeedbackIntakePipeline
from services.feedback.schemas import (
    FeedbackStatusResponse,
    FeedbackStatusUpdateRequest,
    FeedbackStatusUpdateResponse,
    FeedbackSubmitRequest,
    FeedbackSubmitResponse,
    NotificationFlags,
    PendingEntryResolveRequest,
    PendingEntryResolveResponse,
)
from services.moderation.directory import DirectoryLookup, SqlDirectoryLookup
from services.moderation.state_machine import ModerationStateMachine
from services.notification.dispatcher import NotificationDispatcher
from services.notification.recipients import ActiveOperatorRecipients
from services.survey.schemas import (
    SurveySubmitRequest,
    SurveySubmitResponse,
    TokenValidationResponse,
)
from services.survey.survey_service import SurveyService

# Setup logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

service_config = ServiceAppConfig(
    title="Feedback Service",
    description="Healthcare feedback intake, moderation and follow-up survey APIs.",
    service_name="feedback",
)
factory = FastAPIServiceFactory(service_config)
app = factory.create_app()

# ========= Business metrics =========

FEEDBACK_SUBMISSIONS_TOTAL = factory.add_business_metric(
    "feedback_submissions_total",
    "Total feedback submissions accepted",
    ["feedback_type"],
)
PENDING_ENTRY_RESOLUTIONS_TOTAL = factory.add_business_metric(
    "pending_entry_resolutions_total",
    "Total pending entry moderation decisions",
    ["decision"],
)
FEEDBACK_STATUS_TRANSITIONS_TOTAL = factory.add_business_metric(
    "feedback_status_transitions_total",
    "Total feedback status transitions by target status",
    ["status"],
)

# ========= Dependencies =========

_directory: Optional[DirectoryLookup] = None
_dispatcher: Optional[NotificationDispatcher] = None


def get_directory() -> DirectoryLookup:
    global _directory
    if _directory is None:
        _directory = SqlDirectoryLookup()
    return _directory


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher(operator_recipients=ActiveOperatorRecipients())
    return _dispatcher


async def require_operator(
    x_operator_id: Optional[str] = Header(default=None, alias="X-Operator-Id"),
    db: AsyncSession = Depends(get_db),
) -> Operator:
    """
    Resolve the operator forwarded by the upstream credential service.

    Only active admins and moderators may change moderation or review state.
    """
    if not x_operator_id:
        raise PermissionDeniedError()
    try:
        operator_id = uuid.UUID(x_operator_id)
    except ValueError:
        raise PermissionDeniedError()

    result = await db.execute(select(Operator).where(Operator.id == operator_id))
    operator = result.scalar_one_or_none()
    if operator is None or not operator.is_active or operator.role not in ELEVATED_OPERATOR_ROLES:
        logger.warning("Rejected operator request from %s", x_operator_id)
        raise PermissionDeniedError()
    return operator


# ========= Routes =========


@app.get("/")
async def root():
    return {"service": "feedback", "status": "running"}


@app.post("/v1/feedback/submit", response_model=FeedbackSubmitResponse, status_code=201)
async def submit_feedback(
    body: FeedbackSubmitRequest,
    db: AsyncSession = Depends(get_db),
    directory: DirectoryLookup = Depends(get_directory),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    pipeline = FeedbackIntakePipeline(db, directory, dispatcher)
    receipt = await pipeline.submit(body)
    FEEDBACK_SUBMISSIONS_TOTAL.labels(feedback_type=body.feedback_type.value).inc()

    summary = receipt.notifications
    return FeedbackSubmitResponse(
        feedback_id=receipt.feedback_id,
        reference_code=receipt.reference_code,
        status=receipt.status,
        created_at=receipt.created_at,
        pending_entries_created=receipt.pending_entries_created,
        notifications=NotificationFlags(
            status=summary.status.value,
            confirmation_sent=summary.confirmation_sent,
            followup_sent=summary.followup_sent,
            admin_notified=summary.admin_notified,
        ),
    )


@app.get("/v1/feedback/{reference_code}/status", response_model=FeedbackStatusResponse)
async def feedback_status(reference_code: str, db: AsyncSession = Depends(get_db)):
    submission = await get_feedback_factory().get_by_reference_code(db, reference_code)
    if submission is None:
        raise NotFoundError("Feedback")
    return FeedbackStatusResponse(
        reference_code=submission.reference_code,
        status=submission.status,
        feedback_type=submission.feedback_type,
        created_at=submission.created_at,
        updated_at=submission.updated_at,
    )


@app.patch("/v1/feedback/{feedback_id}/status", response_model=FeedbackStatusUpdateResponse)
async def update_feedback_status(
    feedback_id: uuid.UUID,
    body: FeedbackStatusUpdateRequest,
    operator: Operator = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
    directory: DirectoryLookup = Depends(get_directory),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    machine = ModerationStateMachine(db, directory, dispatcher)
    result = await machine.update_submission_status(
        feedback_id,
        body.status.value,
        actor=operator.email,
        admin_notes=body.admin_notes,
        assigned_department=body.assigned_department,
    )
    FEEDBACK_STATUS_TRANSITIONS_TOTAL.labels(status=body.status.value).inc()
    return FeedbackStatusUpdateResponse(
        feedback_id=result.submission.id,
        reference_code=result.submission.reference_code,
        status=result.submission.status,
        previous_status=result.previous_status,
        case_closed_sent=result.case_closed_sent,
    )


@app.post("/v1/pending-entries/{entry_id}/resolve", response_model=PendingEntryResolveResponse)
async def resolve_pending_entry(
    entry_id: uuid.UUID,
    body: PendingEntryResolveRequest,
    operator: Operator = Depends(require_operator),
    db: AsyncSession = Depends(get_db),
    directory: DirectoryLookup = Depends(get_directory),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    machine = ModerationStateMachine(db, directory, dispatcher)
    result = await machine.resolve_pending_entry(entry_id, body.decision, actor=operator.email)
    PENDING_ENTRY_RESOLUTIONS_TOTAL.labels(decision=body.decision).inc()

    entry = result.entry
    return PendingEntryResolveResponse(
        entry_id=entry.id,
        entry_type=entry.entry_type,
        value=entry.value,
        status=entry.status,
        approved_by=entry.approved_by,
        approved_at=entry.approved_at,
        promotion=result.promotion.value,
        warning=result.warning,
    )


@app.get("/v1/survey/validate", response_model=TokenValidationResponse)
async def validate_survey_token(
    token: str = Query(..., min_length=1, max_length=64),
    db: AsyncSession = Depends(get_db),
):
    validation = await SurveyService(db).validate_token(token)
    return TokenValidationResponse(
        valid=validation.valid,
        already_submitted=validation.already_submitted,
        feedback_id=validation.feedback_id,
    )


@app.post("/v1/survey/submit", response_model=SurveySubmitResponse, status_code=201)
async def submit_survey(body: SurveySubmitRequest, db: AsyncSession = Depends(get_db)):
    response = await SurveyService(db).submit(body)
    return SurveySubmitResponse(
        survey_id=response.id,
        feedback_id=response.feedback_id,
        created_at=response.created_at,
    )
