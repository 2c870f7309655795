"""
Notification Dispatcher - concurrent, fault-isolated fan-out.

Each intent runs as its own task, bounded by its own timeout and wrapped in
its own failure boundary. No attempt cancels or delays a sibling, and
nothing raised by a channel crosses ``dispatch``.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from common.notification_status import DeliveryStatus, NotificationStatus
from libs.config import config
from services.notification.factory import NotificationFactory
from services.notification.models import (
    DispatchOutcome,
    NotificationIntent,
    NotificationSummary,
    SendResult,
)
from services.notification.notification_types import (
    NotificationChannel,
    NotificationIntentType,
)
from services.notification.templates import get_subject, get_template, render

logger = logging.getLogger(__name__)

RecipientResolver = Callable[[], Awaitable[List[str]]]


class NotificationDispatcher:
    def __init__(
        self,
        factory: Optional[NotificationFactory] = None,
        operator_recipients: Optional[RecipientResolver] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._factory = factory or NotificationFactory()
        self._operator_recipients = operator_recipients
        self._timeout_s = timeout_s if timeout_s is not None else config.NOTIFICATION_CHANNEL_TIMEOUT_S

    async def send(
        self,
        channel: NotificationChannel,
        recipients: List[str],
        template_id: str,
        variables: Dict[str, str],
        locale: Optional[str] = None,
    ) -> SendResult:
        """Render ``template_id`` and deliver it over ``channel``. Never raises."""
        channel = NotificationChannel(channel)
        template = get_template(template_id, channel.value, locale)
        if not template:
            return SendResult(
                delivered=False,
                channel=channel,
                error=f"Missing template {template_id}.{channel.value}",
            )
        body = render(template, variables)
        subject = render(get_subject(template_id, channel.value, locale), variables)

        try:
            sender = self._factory.get_sender(channel)
            return await sender.send(recipients, subject, body)
        except Exception as e:
            logger.exception("Sender for %s raised while sending %s", channel.value, template_id)
            return SendResult(delivered=False, channel=channel, error=str(e))

    async def _resolve_recipients(self, intent: NotificationIntent) -> List[str]:
        if intent.recipients is not None:
            return [r for r in intent.recipients if r]
        if self._operator_recipients is None:
            logger.warning("No operator resolver configured for %s", intent.intent.value)
            return []
        return await self._operator_recipients()

    async def _attempt(self, intent: NotificationIntent) -> DispatchOutcome:
        async def _run() -> DispatchOutcome:
            recipients = await self._resolve_recipients(intent)
            if not recipients:
                return DispatchOutcome(
                    intent=intent.intent,
                    channel=intent.channel,
                    status=DeliveryStatus.SKIPPED,
                )
            result = await self.send(
                intent.channel, recipients, intent.template_id, intent.variables, intent.locale
            )
            return DispatchOutcome(
                intent=intent.intent,
                channel=intent.channel,
                status=DeliveryStatus.DELIVERED if result.delivered else DeliveryStatus.FAILED,
                recipient_count=len(recipients),
                error=result.error,
            )

        try:
            return await asyncio.wait_for(_run(), timeout=self._timeout_s)
        except asyncio.TimeoutError:
            logger.warning(
                "Notification %s via %s timed out after %.1fs",
                intent.intent.value,
                intent.channel.value,
                self._timeout_s,
            )
            return DispatchOutcome(
                intent=intent.intent,
                channel=intent.channel,
                status=DeliveryStatus.TIMED_OUT,
                error="timeout",
            )
        except Exception as e:
            logger.exception(
                "Notification %s via %s failed", intent.intent.value, intent.channel.value
            )
            return DispatchOutcome(
                intent=intent.intent,
                channel=intent.channel,
                status=DeliveryStatus.FAILED,
                error=str(e),
            )

    async def dispatch(self, intents: Iterable[NotificationIntent]) -> List[DispatchOutcome]:
        """Attempt every intent concurrently; outcomes keep the input order."""
        intents = list(intents)
        if not intents:
            return []
        outcomes = await asyncio.gather(*(self._attempt(intent) for intent in intents))
        for outcome in outcomes:
            logger.info(
                "Notification %s via %s: %s",
                outcome.intent.value,
                outcome.channel.value,
                outcome.status.value,
            )
        return list(outcomes)


def summarize(outcomes: Iterable[DispatchOutcome]) -> NotificationSummary:
    """Fold per-intent outcomes into the flags persisted on a submission."""
    outcome_list = list(outcomes)
    attempted = [o for o in outcome_list if o.status != DeliveryStatus.SKIPPED]
    successes = [o for o in attempted if o.delivered]

    if not attempted:
        status = NotificationStatus.NOT_TRIGGERED
    elif len(successes) == len(attempted):
        status = NotificationStatus.DELIVERED
    elif successes:
        status = NotificationStatus.PARTIAL
    else:
        status = NotificationStatus.FAILED

    def _any(intent_type: NotificationIntentType) -> bool:
        return any(o.delivered for o in outcome_list if o.intent == intent_type)

    return NotificationSummary(
        status=status,
        confirmation_sent=_any(NotificationIntentType.SUBMISSION_CONFIRMATION),
        followup_sent=_any(NotificationIntentType.SURVEY_INVITE),
        admin_notified=_any(NotificationIntentType.ADMIN_BROADCAST),
        outcomes=outcome_list,
    )
