"""
Type definitions for the moderation service.

This module contains all enum types used for pending entries and the
facility directory.
"""

from enum import Enum


class EntryType(str, Enum):
    """Moderation candidate category."""

    FACILITY = "facility"
    DEPARTMENT = "department"
    LOCATION = "location"
    ISSUE_CLASSIFICATION = "issue_classification"


# Categories whose approval writes into the canonical directory
DIRECTORY_BACKED_TYPES = frozenset({EntryType.FACILITY})


class PendingEntryStatus(str, Enum):
    """Moderation status enumeration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that take part in duplicate suppression
ACTIVE_ENTRY_STATUSES = (PendingEntryStatus.PENDING.value, PendingEntryStatus.APPROVED.value)


class FacilityOwnershipType(str, Enum):
    FEDERAL = "federal"
    STATE = "state"
    PRIVATE = "private"
    UNKNOWN = "unknown"

    @classmethod
    def from_facility_type(cls, facility_type):
        """Map a reporter-supplied facility type onto an ownership type."""
        try:
            return cls((facility_type or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class PromotionOutcome(str, Enum):
    """What happened to the directory when an entry was resolved."""

    PROMOTED = "promoted"
    ALREADY_PRESENT = "already_present"
    FAILED = "failed"
    NOT_APPLICABLE = "not_applicable"
