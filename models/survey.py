import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, utcnow


class SurveyResponse(Base):
    """Follow-up survey answers; at most one per feedback submission."""

    __tablename__ = "survey_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    feedback_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("feedback_submissions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # 1-5 ratings
    overall_satisfaction: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    staff_friendliness: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    communication: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cleanliness: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    wait_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    would_recommend: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
