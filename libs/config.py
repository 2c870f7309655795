"""
Configuration module for loading environment variables
"""

import os
from typing import Optional


class Config:
    """Application configuration"""

    # Public app URL used for links in outgoing messages
    APP_URL: str = os.getenv("APP_URL", "http://localhost:8080")

    # Email (SMTP) Configuration
    EMAIL_FROM: str = os.getenv(
        "EMAIL_FROM", "MYvoiceMYhealth <no-reply@healthcare-feedback.example.com>"
    )
    SMTP_HOST: Optional[str] = os.getenv("SMTP_HOST")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: Optional[str] = os.getenv("SMTP_USER")
    SMTP_PASSWORD: Optional[str] = os.getenv("SMTP_PASSWORD")
    SMTP_USE_TLS: bool = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Twilio Configuration
    TWILIO_ACCOUNT_SID: Optional[str] = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: Optional[str] = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_PHONE_NUMBER: Optional[str] = os.getenv("TWILIO_PHONE_NUMBER")

    # Notification dispatch
    # "dummy" / "dev" / "test" log the message instead of sending it
    NOTIFICATION_EMAIL_MODE: str = os.getenv("NOTIFICATION_EMAIL_MODE", "").lower()
    NOTIFICATION_SMS_MODE: str = os.getenv("NOTIFICATION_SMS_MODE", "").lower()
    NOTIFICATION_CHANNEL_TIMEOUT_S: float = float(
        os.getenv("NOTIFICATION_CHANNEL_TIMEOUT_S", "10")
    )
    NOTIFICATION_MAX_RETRIES: int = int(os.getenv("NOTIFICATION_MAX_RETRIES", "3"))

    @classmethod
    def validate_twilio_config(cls) -> bool:
        """Check if Twilio configuration is complete"""
        return all(
            [cls.TWILIO_ACCOUNT_SID, cls.TWILIO_AUTH_TOKEN, cls.TWILIO_PHONE_NUMBER]
        )

    @classmethod
    def validate_smtp_config(cls) -> bool:
        """Check if SMTP configuration is complete"""
        return all([cls.SMTP_HOST, cls.EMAIL_FROM])


DUMMY_MODES = {"dummy", "dev", "test"}

config = Config()
