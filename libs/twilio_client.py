"""
Twilio SMS Client

One-shot SMS sends for reporter notifications. Failures come back in the
result dict instead of raising so a bad number never aborts a batch.
"""

import logging
import re
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from libs.config import config

logger = logging.getLogger(__name__)

# Twilio refuses bodies longer than this
MAX_SMS_BODY = 1600

E164_PATTERN = re.compile(r"^\+[1-9]\d{6,14}$")


def _failed(to_phone: str, error: str) -> dict:
    return {"status": "failed", "sid": None, "to": to_phone, "error": error}


class TwilioClient:
    """Sends SMS through the configured Twilio account and number."""

    def __init__(self):
        if not config.validate_twilio_config():
            raise ValueError(
                "Missing Twilio configuration. Set TWILIO_ACCOUNT_SID, "
                "TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER"
            )
        self.from_phone = config.TWILIO_PHONE_NUMBER
        self.client = Client(
            config.TWILIO_ACCOUNT_SID,
            config.TWILIO_AUTH_TOKEN,
            http_client=TwilioHttpClient(timeout=config.NOTIFICATION_CHANNEL_TIMEOUT_S),
        )

    def send_sms(self, to_phone: str, message: str) -> dict:
        """
        Send one SMS.

        Args:
            to_phone: Recipient in E.164 format, e.g. +2348012345678
            message: Body; truncated to MAX_SMS_BODY characters

        Returns:
            dict with ``status`` ("sent" / "failed"), ``sid``, ``to`` and ``error``
        """
        to_phone = (to_phone or "").replace(" ", "")
        if not E164_PATTERN.match(to_phone):
            logger.warning("Refusing SMS to non-E.164 number %r", to_phone)
            return _failed(to_phone, "recipient is not an E.164 phone number")

        if len(message) > MAX_SMS_BODY:
            message = message[: MAX_SMS_BODY - 3] + "..."

        try:
            msg = self.client.messages.create(body=message, from_=self.from_phone, to=to_phone)
        except TwilioRestException as e:
            logger.warning("Twilio rejected SMS to %s: %s", to_phone, e.msg)
            return _failed(to_phone, f"twilio error {e.code}: {e.msg}")

        return {"status": "sent", "sid": msg.sid, "to": to_phone, "error": None}


_twilio_client: Optional[TwilioClient] = None


def get_twilio_client() -> TwilioClient:
    global _twilio_client
    if _twilio_client is None:
        _twilio_client = TwilioClient()
    return _twilio_client
