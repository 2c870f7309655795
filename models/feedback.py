"""
Feedback-related database models.

Defines SQLAlchemy ORM models for feedback submissions.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, utcnow


class FeedbackSubmission(Base):
    """Feedback submission model.

    ``reference_code`` and ``survey_token`` are written once at creation and
    never updated. Rows are never deleted.
    """

    __tablename__ = "feedback_submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    reference_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    survey_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    # Reporter
    anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reporter_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reporter_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reporter_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    reporter_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Store enum values as strings
    feedback_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # Free-text fields subject to moderation
    facility_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    facility_region: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facility_sub_region: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facility_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    issue_classification: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    issue_classification_other: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    description: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    incident_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    staff_involved: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    additional_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    locale: Mapped[str] = mapped_column(String(10), nullable=False, default="en")

    # Review
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="new", index=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assigned_department: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Notification flags
    confirmation_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    followup_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    @property
    def has_contact_channel(self) -> bool:
        """True when the reporter can be reached (non-anonymous with email or phone)."""
        return not self.anonymous and bool(self.reporter_email or self.reporter_phone)
