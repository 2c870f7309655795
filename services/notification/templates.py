from typing import Dict, Optional

from common.constants import DEFAULT_LOCALE

# In-code templates for now; later swap this module with DB-backed store.
# Key format: "{template_id}.{channel}.{locale}"
TEMPLATES: Dict[str, str] = {
    "submission_confirmation.email.en": (
        "Thank you for your feedback.\n\n"
        "We have successfully received your submission.\n"
        "Reference Number: {reference_code}\n\n"
        "Please keep this reference number for your records. You can use it to "
        "track the status of your submission at {app_url}."
    ),
    "submission_confirmation.sms.en": (
        "MYvoiceMYhealth: feedback received. Reference: {reference_code}. "
        "Keep it to track your case."
    ),
    "survey_invite.email.en": (
        "Thank you for submitting your feedback (Reference: {reference_code}).\n\n"
        "To help us improve our services, please take 2-3 minutes to complete a "
        "brief survey about your experience:\n{survey_link}"
    ),
    "survey_invite.sms.en": (
        "MYvoiceMYhealth: tell us about your experience ({reference_code}): {survey_link}"
    ),
    "admin_broadcast.email.en": (
        "A new {feedback_type_label} has been submitted and requires your attention.\n\n"
        "Reference Number: {reference_code}\n"
        "Type: {feedback_type_label}\n\n"
        "View it in the admin dashboard: {app_url}/admin/feedback/{feedback_id}"
    ),
    "case_closed.email.en": (
        "Dear Respondent,\n\n"
        "Your feedback submission has been reviewed and the case has been resolved.\n\n"
        "Reference Number: {reference_code}\n"
        "Status: Closed\n\n"
        "Thank you for taking the time to share your feedback with us. If you have "
        "further concerns, please submit a new report at {app_url}."
    ),
    "case_closed.sms.en": (
        "MYvoiceMYhealth: your case {reference_code} has been reviewed and closed. "
        "Thank you for your feedback."
    ),
}

# Email subjects, same key format as TEMPLATES
SUBJECTS: Dict[str, str] = {
    "submission_confirmation.email.en": "Feedback Received - Reference: {reference_code}",
    "survey_invite.email.en": "Follow Up on Feedback (Reference: {reference_code})",
    "admin_broadcast.email.en": "New {feedback_type_label} Submitted - Reference: {reference_code}",
    "case_closed.email.en": "Case Resolved - Reference: {reference_code}",
}


def _lookup(store: Dict[str, str], template_id: str, channel: str, locale: str) -> str:
    key = f"{template_id}.{channel}.{locale}"
    if key in store:
        return store[key]
    return store.get(f"{template_id}.{channel}.{DEFAULT_LOCALE}", "")


def get_template(template_id: str, channel: str, locale: Optional[str] = None) -> str:
    return _lookup(TEMPLATES, template_id, channel, locale or DEFAULT_LOCALE)


def get_subject(template_id: str, channel: str, locale: Optional[str] = None) -> str:
    return _lookup(SUBJECTS, template_id, channel, locale or DEFAULT_LOCALE)


def render(template: str, variables: Dict[str, str]) -> str:
    message = template
    for key, value in variables.items():
        message = message.replace(f"{{{key}}}", str(value))
    return message
