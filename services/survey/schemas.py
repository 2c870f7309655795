"""
Request and response models for the follow-up survey.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

Rating = Optional[int]


class SurveySubmitRequest(BaseModel):
    token: str = Field(min_length=1, max_length=64)
    overall_satisfaction: Rating = Field(default=None, ge=1, le=5)
    staff_friendliness: Rating = Field(default=None, ge=1, le=5)
    communication: Rating = Field(default=None, ge=1, le=5)
    cleanliness: Rating = Field(default=None, ge=1, le=5)
    wait_time: Rating = Field(default=None, ge=1, le=5)
    would_recommend: Optional[bool] = None
    comments: Optional[str] = Field(default=None, max_length=2000)


class SurveySubmitResponse(BaseModel):
    survey_id: uuid.UUID
    feedback_id: uuid.UUID
    created_at: datetime


class TokenValidationResponse(BaseModel):
    valid: bool
    already_submitted: bool
    feedback_id: Optional[uuid.UUID] = None
