"""
Builds notification intents for feedback lifecycle events.
"""

from typing import Dict, List, Optional

from libs.config import config
from models.feedback import FeedbackSubmission
from services.notification.models import NotificationIntent
from services.notification.notification_types import (
    NotificationChannel,
    NotificationIntentType,
)


def _feedback_type_label(feedback_type: str) -> str:
    return feedback_type.replace("_", " ").title()


def _base_variables(submission: FeedbackSubmission) -> Dict[str, str]:
    return {
        "reference_code": submission.reference_code,
        "feedback_id": str(submission.id),
        "feedback_type_label": _feedback_type_label(submission.feedback_type),
        "app_url": config.APP_URL,
    }


def reporter_channel(submission: FeedbackSubmission) -> Optional[tuple]:
    """(channel, address) to reach the reporter, email preferred; None if unreachable."""
    if not submission.has_contact_channel:
        return None
    if submission.reporter_email:
        return NotificationChannel.EMAIL, submission.reporter_email
    return NotificationChannel.SMS, submission.reporter_phone


def build_submission_intents(submission: FeedbackSubmission) -> List[NotificationIntent]:
    """Confirmation + survey invite for reachable reporters; operators are always told."""
    variables = _base_variables(submission)
    variables["survey_link"] = f"{config.APP_URL}/survey?token={submission.survey_token}"
    locale = submission.locale or "en"

    intents = []
    contact = reporter_channel(submission)
    if contact is not None:
        channel, address = contact
        intents.append(
            NotificationIntent(
                intent=NotificationIntentType.SUBMISSION_CONFIRMATION,
                channel=channel,
                recipients=[address],
                variables=variables,
                locale=locale,
            )
        )
        intents.append(
            NotificationIntent(
                intent=NotificationIntentType.SURVEY_INVITE,
                channel=channel,
                recipients=[address],
                variables=variables,
                locale=locale,
            )
        )

    intents.append(
        NotificationIntent(
            intent=NotificationIntentType.ADMIN_BROADCAST,
            channel=NotificationChannel.EMAIL,
            recipients=None,
            variables=variables,
        )
    )
    return intents


def build_case_closed_intent(submission: FeedbackSubmission) -> Optional[NotificationIntent]:
    contact = reporter_channel(submission)
    if contact is None:
        return None
    channel, address = contact
    return NotificationIntent(
        intent=NotificationIntentType.CASE_CLOSED,
        channel=channel,
        recipients=[address],
        variables=_base_variables(submission),
        locale=submission.locale or "en",
    )
