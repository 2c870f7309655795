"""
SMTP Email Client
Builds and sends plain-text notification emails over SMTP with STARTTLS.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import List, Optional

from libs.config import config

logger = logging.getLogger(__name__)


class SmtpEmailClient:
    """Thin wrapper around smtplib for one-shot sends.

    The client performs a single attempt per call; retry policy belongs to
    the notification sender that calls it.
    """

    def __init__(self):
        self.smtp_host = config.SMTP_HOST
        self.smtp_port = config.SMTP_PORT
        self.smtp_user = config.SMTP_USER
        self.smtp_password = config.SMTP_PASSWORD
        self.use_tls = config.SMTP_USE_TLS
        self.from_email = config.EMAIL_FROM
        self.timeout = config.NOTIFICATION_CHANNEL_TIMEOUT_S

        if not config.validate_smtp_config():
            raise ValueError("Missing SMTP configuration. Please set SMTP_HOST and EMAIL_FROM")

    def build_message(self, recipients: List[str], subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.from_email
        message["To"] = ", ".join(recipients)
        message.set_content(body)
        return message

    def send(self, recipients: List[str], subject: str, body: str) -> None:
        """Send one email to all recipients.

        Raises:
            smtplib.SMTPException: On SMTP errors
        """
        message = self.build_message(recipients, subject, body)
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.smtp_user:
                server.login(self.smtp_user, self.smtp_password)
            server.send_message(message)
        logger.info("Email '%s' sent to %d recipient(s)", subject, len(recipients))


# Singleton instance
_email_client: Optional[SmtpEmailClient] = None


def get_email_client() -> SmtpEmailClient:
    """Get or create the SMTP client singleton"""
    global _email_client
    if _email_client is None:
        _email_client = SmtpEmailClient()
    return _email_client
