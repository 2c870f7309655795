"""
Type definitions for feedback service.

This module contains all enum types used in the feedback service.
"""

from enum import Enum


class FeedbackStatus(str, Enum):
    """Feedback review status enumeration. ``closed`` is terminal."""

    NEW = "new"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"
    CLOSED = "closed"


class FeedbackType(str, Enum):
    """Feedback type/category enumeration."""

    COMPLAINT = "complaint"
    CONCERN = "concern"
    COMPLIMENT = "compliment"
    SAFETY_INCIDENT = "safety_incident"
    COMMENT = "comment"


class ReporterType(str, Enum):
    PATIENT = "patient"
    RELATIVE = "relative"
    VISITOR = "visitor"
    STAFF = "staff"
    OTHER = "other"
