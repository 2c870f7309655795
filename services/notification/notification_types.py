from enum import Enum


class NotificationIntentType(str, Enum):
    SUBMISSION_CONFIRMATION = "submission_confirmation"
    SURVEY_INVITE = "survey_invite"
    ADMIN_BROADCAST = "admin_broadcast"
    CASE_CLOSED = "case_closed"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
