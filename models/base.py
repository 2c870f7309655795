"""
Shared declarative base for all database models.

Every table lives on one metadata so foreign keys between feedback,
pending entries and survey responses resolve.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
