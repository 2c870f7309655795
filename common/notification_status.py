"""
Notification Status Enums
Shared status enumerations for notification dispatch outcomes.
"""

from enum import Enum


class DeliveryStatus(str, Enum):
    """Per-intent delivery outcome"""
    DELIVERED = "delivered"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    SKIPPED = "skipped"


class NotificationStatus(str, Enum):
    """Overall notification status values for one fan-out"""
    DELIVERED = "delivered"
    FAILED = "failed"
    PARTIAL = "partial"
    NOT_TRIGGERED = "not_triggered"
