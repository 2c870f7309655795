"""
Request and response models for the feedback service.
"""

import uuid
from datetime import date, datetime
from typing import Literal, Optional

import validators
from pydantic import BaseModel, Field, field_validator, model_validator

from services.feedback.types import FeedbackStatus, FeedbackType, ReporterType
from services.moderation.normalization import clean_value


class FeedbackSubmitRequest(BaseModel):
    anonymous: bool = False
    reporter_name: Optional[str] = Field(default=None, max_length=255)
    reporter_email: Optional[str] = Field(default=None, max_length=255)
    reporter_phone: Optional[str] = Field(default=None, max_length=50)
    reporter_type: Optional[ReporterType] = None

    feedback_type: FeedbackType

    facility_name: Optional[str] = Field(default=None, max_length=500)
    facility_region: Optional[str] = Field(default=None, max_length=255)
    facility_sub_region: Optional[str] = Field(default=None, max_length=255)
    facility_type: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    issue_classification: Optional[str] = Field(default=None, max_length=500)
    issue_classification_other: Optional[str] = Field(default=None, max_length=500)

    description: str = Field(max_length=10000)
    severity: Optional[int] = Field(default=None, ge=1, le=5)
    incident_date: Optional[date] = None
    staff_involved: Optional[str] = None
    additional_comments: Optional[str] = None
    locale: str = Field(default="en", max_length=10)

    @field_validator(
        "reporter_name",
        "reporter_email",
        "reporter_phone",
        "reporter_type",
        "facility_name",
        "facility_region",
        "facility_sub_region",
        "facility_type",
        "department",
        "location",
        "issue_classification",
        "issue_classification_other",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            return clean_value(v)
        return v

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description must not be empty")
        return v

    @field_validator("reporter_email")
    @classmethod
    def email_is_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and validators.email(v) is not True:
            raise ValueError("Must be a valid email address")
        return v

    @model_validator(mode="after")
    def drop_contact_when_anonymous(self):
        if self.anonymous:
            self.reporter_name = None
            self.reporter_email = None
            self.reporter_phone = None
        return self


class NotificationFlags(BaseModel):
    status: str
    confirmation_sent: bool
    followup_sent: bool
    admin_notified: bool


class FeedbackSubmitResponse(BaseModel):
    feedback_id: uuid.UUID
    reference_code: str
    status: str
    created_at: datetime
    pending_entries_created: int
    notifications: NotificationFlags


class FeedbackStatusResponse(BaseModel):
    reference_code: str
    status: str
    feedback_type: str
    created_at: datetime
    updated_at: datetime


class FeedbackStatusUpdateRequest(BaseModel):
    status: FeedbackStatus
    admin_notes: Optional[str] = None
    assigned_department: Optional[str] = Field(default=None, max_length=255)


class FeedbackStatusUpdateResponse(BaseModel):
    feedback_id: uuid.UUID
    reference_code: str
    status: str
    previous_status: str
    case_closed_sent: Optional[bool] = None


class PendingEntryResolveRequest(BaseModel):
    decision: Literal["approved", "rejected"]


class PendingEntryResolveResponse(BaseModel):
    entry_id: uuid.UUID
    entry_type: str
    value: str
    status: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    promotion: str
    warning: Optional[str] = None
