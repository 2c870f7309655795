import asyncio
import logging
import smtplib
from typing import List

from libs.config import DUMMY_MODES, config
from libs.email_client import get_email_client
from libs.twilio_client import get_twilio_client
from services.notification.models import SendResult
from services.notification.notification_types import NotificationChannel

logger = logging.getLogger(__name__)


class BaseSender:
    """Base class for notification senders"""

    channel: NotificationChannel

    async def send(self, recipients: List[str], subject: str, body: str) -> SendResult:
        """
        Send a rendered message via this channel.

        Args:
            recipients: Channel-specific addresses (emails or E.164 phone numbers)
            subject: Subject line (ignored by channels without one)
            body: Rendered message body

        Returns:
            SendResult describing whether the provider accepted the message
        """
        raise NotImplementedError("Sender must implement send()")


class EmailSender(BaseSender):
    """Email sender with retry and exponential backoff on SMTP errors"""

    channel = NotificationChannel.EMAIL

    def __init__(self, max_retries: int = None, backoff_base: float = 1.0):
        self.max_retries = max_retries or config.NOTIFICATION_MAX_RETRIES
        self.backoff_base = backoff_base

    async def send(self, recipients: List[str], subject: str, body: str) -> SendResult:
        if config.NOTIFICATION_EMAIL_MODE in DUMMY_MODES:
            logger.info("[dummy email] to=%s subject=%s", recipients, subject)
            return SendResult(delivered=True, channel=self.channel, provider_id="EMAIL-DUMMY")

        client = get_email_client()
        for attempt in range(self.max_retries):
            try:
                # smtplib blocks; keep it off the event loop
                await asyncio.to_thread(client.send, recipients, subject, body)
                return SendResult(delivered=True, channel=self.channel)
            except (smtplib.SMTPException, OSError) as e:
                if attempt < self.max_retries - 1:
                    sleep_time = self.backoff_base * (2 ** attempt)
                    logger.warning(
                        "Email '%s' failed (attempt %d/%d): %s. Retrying in %.1fs",
                        subject,
                        attempt + 1,
                        self.max_retries,
                        e,
                        sleep_time,
                    )
                    await asyncio.sleep(sleep_time)
                else:
                    logger.error(
                        "Email '%s' failed after %d attempts: %s", subject, self.max_retries, e
                    )
                    return SendResult(delivered=False, channel=self.channel, error=str(e))
        return SendResult(delivered=False, channel=self.channel, error="no attempts made")


class SmsSender(BaseSender):
    """SMS sender backed by Twilio"""

    channel = NotificationChannel.SMS

    async def send(self, recipients: List[str], subject: str, body: str) -> SendResult:
        if config.NOTIFICATION_SMS_MODE in DUMMY_MODES:
            logger.info("[dummy sms] to=%s body=%s", recipients, body)
            return SendResult(delivered=True, channel=self.channel, provider_id="SMS-DUMMY")

        twilio = get_twilio_client()
        errors = []
        sids = []
        for to_phone in recipients:
            result = await asyncio.to_thread(twilio.send_sms, to_phone=to_phone, message=body)
            if result["status"] == "sent":
                sids.append(result.get("sid") or "")
            else:
                errors.append(f"{to_phone}: {result.get('error')}")

        if errors:
            return SendResult(
                delivered=False,
                channel=self.channel,
                provider_id=",".join(sids) or None,
                error="; ".join(errors),
            )
        return SendResult(delivered=True, channel=self.channel, provider_id=",".join(sids))


class NotificationFactory:
    def __init__(self) -> None:
        self._senders = {
            NotificationChannel.EMAIL: EmailSender(),
            NotificationChannel.SMS: SmsSender(),
        }

    def get_sender(self, channel: NotificationChannel) -> BaseSender:
        channel = NotificationChannel(channel)
        if channel not in self._senders:
            raise ValueError(f"Unsupported channel: {channel}")
        return self._senders[channel]
