"""
Moderation queue model.

Free-text values entered by reporters wait here for an operator decision
before they join the controlled vocabulary.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, utcnow

# Rejected rows never block a later identical candidate
ACTIVE_STATUS_CLAUSE = "status IN ('pending', 'approved')"


class PendingEntry(Base):
    """Moderation candidate keyed by (entry_type, dedup_key)."""

    __tablename__ = "pending_entries"
    __table_args__ = (
        Index(
            "uq_pending_entries_active_dedup",
            "entry_type",
            "dedup_key",
            unique=True,
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    entry_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    value: Mapped[str] = mapped_column(String(500), nullable=False)

    # Disambiguators (facility candidates only)
    region: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sub_region: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facility_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Normalized "value|region|sub_region", see services.moderation.normalization
    dedup_key: Mapped[str] = mapped_column(String(1100), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)

    # Nullable: entries may originate outside the intake pipeline
    feedback_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("feedback_submissions.id", ondelete="SET NULL"),
        nullable=True,
    )

    approved_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

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
