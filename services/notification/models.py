from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from common.notification_status import DeliveryStatus, NotificationStatus
from services.notification.notification_types import (
    NotificationChannel,
    NotificationIntentType,
)


class SendResult(BaseModel):
    delivered: bool
    channel: NotificationChannel
    provider_id: Optional[str] = None
    error: Optional[str] = None


class NotificationIntent(BaseModel):
    """One message to attempt. ``recipients=None`` means the operator audience."""

    intent: NotificationIntentType
    channel: NotificationChannel = NotificationChannel.EMAIL
    recipients: Optional[List[str]] = None
    variables: Dict[str, str] = Field(default_factory=dict)
    locale: str = "en"

    @property
    def template_id(self) -> str:
        return self.intent.value


class DispatchOutcome(BaseModel):
    intent: NotificationIntentType
    channel: NotificationChannel
    status: DeliveryStatus
    recipient_count: int = 0
    error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED


class NotificationSummary(BaseModel):
    status: NotificationStatus
    confirmation_sent: bool = False
    followup_sent: bool = False
    admin_notified: bool = False
    outcomes: List[DispatchOutcome] = Field(default_factory=list)
