"""
Application-wide constants for the feedback backend.

This module contains all shared constants used across the application.
"""

import os

# ========= Identifier Configuration =========
REFERENCE_CODE_PREFIX = "FB"
REFERENCE_CODE_SUFFIX_LENGTH = 5
# Uppercase letters and digits; reference codes compare case-insensitively
REFERENCE_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
# The 5-char suffix is not collision-free, so inserts regenerate on conflict
REFERENCE_CODE_MAX_ATTEMPTS = 5

# ========= Controlled Vocabularies =========
# Free-text values outside these lists are routed to moderation.
PREDEFINED_DEPARTMENTS = frozenset(
    {
        "Emergency",
        "Outpatient",
        "Inpatient",
        "Surgery",
        "Maternity",
        "Paediatrics",
        "Radiology",
        "Laboratory",
        "Pharmacy",
        "Administration",
        "Mental Health",
        "Rehabilitation",
        "ICU",
        "Orthopaedics",
        "Cardiology",
        "Oncology",
        "Dental",
        "ENT",
        "Ophthalmology",
        "Gynaecology",
        "Anaesthesiology",
        "General Ward",
        "Other",
    }
)

PREDEFINED_LOCATIONS = frozenset(
    {
        "Reception",
        "Waiting Area",
        "Consultation Room",
        "Ward",
        "Operating Theatre",
        "Pharmacy",
        "Laboratory",
        "Radiology",
        "Emergency Room",
        "Corridor",
        "Cafeteria",
        "Car Park",
        "Restroom",
        "Nurses Station",
        "Doctor's Office",
        "Other",
    }
)

# Issue classification value that unlocks the free-text "other" field
ISSUE_CLASSIFICATION_OTHER = "Other"

# ========= Operator Roles =========
# Roles allowed to transition moderation / feedback state
ELEVATED_OPERATOR_ROLES = frozenset({"admin", "moderator"})

# ========= Notification Configuration =========
DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "en")
