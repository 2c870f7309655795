"""
Canonical health facility directory.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, utcnow


class HealthFacility(Base):
    __tablename__ = "health_facilities"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    region: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sub_region: Mapped[str] = mapped_column(String(255), nullable=False)

    # federal / state / private / unknown
    ownership_type: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown")

    # Case-insensitive uniqueness of (name, region, sub_region)
    name_key: Mapped[str] = mapped_column(String(1100), nullable=False, unique=True)

    source_entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
