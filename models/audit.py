# models/audit.py
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class AuditEventType(str, enum.Enum):
    feedback = "feedback"
    moderation = "moderation"
    notification = "notification"
    survey = "survey"
    system = "system"


class Audit(Base):
    """Append-only trail of submissions, moderation decisions and sends."""

    __tablename__ = "audit_log"
    __table_args__ = (Index("ix_audit_log_event", "event_type", "event_id"),)

    log_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Operator email; None when the reporter triggered the event
    actor: Mapped[Optional[str]] = mapped_column(String(255))

    event_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Feedback id or pending entry id
    event_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True))

    message: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
