"""
Unit tests for the email and SMS channel senders.
"""

import smtplib

import pytest
from twilio.base.exceptions import TwilioRestException
from twilio.http.http_client import TwilioHttpClient

from libs.config import Config
from libs.email_client import SmtpEmailClient
from libs.twilio_client import MAX_SMS_BODY, TwilioClient
from services.notification.factory import EmailSender, NotificationFactory, SmsSender
from services.notification.notification_types import NotificationChannel

pytestmark = pytest.mark.unit


@pytest.fixture
def live_email(monkeypatch):
    monkeypatch.setattr(Config, "NOTIFICATION_EMAIL_MODE", "")


@pytest.fixture
def live_sms(monkeypatch):
    monkeypatch.setattr(Config, "NOTIFICATION_SMS_MODE", "")


class TestEmailSender:
    @pytest.mark.asyncio
    async def test_dummy_mode_skips_smtp(self, monkeypatch, mocker):
        """Test dummy mode skips smtp"""
        monkeypatch.setattr(Config, "NOTIFICATION_EMAIL_MODE", "dummy")
        get_client = mocker.patch("services.notification.factory.get_email_client")

        result = await EmailSender().send(["ada@example.com"], "Subject", "Body")

        assert result.delivered is True
        assert result.provider_id == "EMAIL-DUMMY"
        get_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_retries_transient_smtp_errors(self, live_email, mocker):
        """Test retries transient smtp errors"""
        client = mocker.Mock()
        client.send.side_effect = [smtplib.SMTPServerDisconnected("gone"), None]
        mocker.patch("services.notification.factory.get_email_client", return_value=client)

        result = await EmailSender(max_retries=3, backoff_base=0).send(
            ["ada@example.com"], "Subject", "Body"
        )

        assert result.delivered is True
        assert client.send.call_count == 2

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, live_email, mocker):
        """Test refused connections and socket timeouts are retried"""
        client = mocker.Mock()
        client.send.side_effect = [ConnectionRefusedError("relay down"), TimeoutError("timed out"), None]
        mocker.patch("services.notification.factory.get_email_client", return_value=client)

        result = await EmailSender(max_retries=3, backoff_base=0).send(
            ["ada@example.com"], "Subject", "Body"
        )

        assert result.delivered is True
        assert client.send.call_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, live_email, mocker):
        """Test gives up after max retries"""
        client = mocker.Mock()
        client.send.side_effect = smtplib.SMTPException("relay denied")
        mocker.patch("services.notification.factory.get_email_client", return_value=client)

        result = await EmailSender(max_retries=3, backoff_base=0).send(
            ["ada@example.com"], "Subject", "Body"
        )

        assert result.delivered is False
        assert "relay denied" in result.error
        assert client.send.call_count == 3


class TestSmsSender:
    @pytest.mark.asyncio
    async def test_dummy_mode(self, monkeypatch):
        """Test dummy mode skips Twilio"""
        monkeypatch.setattr(Config, "NOTIFICATION_SMS_MODE", "test")

        result = await SmsSender().send(["+2348012345678"], "", "Body")

        assert result.delivered is True
        assert result.provider_id == "SMS-DUMMY"

    @pytest.mark.asyncio
    async def test_sends_each_recipient(self, live_sms, mocker):
        """Test sends each recipient"""
        twilio = mocker.Mock()
        twilio.send_sms.side_effect = [
            {"status": "sent", "sid": "SM1", "error": None},
            {"status": "sent", "sid": "SM2", "error": None},
        ]
        mocker.patch("services.notification.factory.get_twilio_client", return_value=twilio)

        result = await SmsSender().send(["+2348000000001", "+2348000000002"], "", "Body")

        assert result.delivered is True
        assert result.provider_id == "SM1,SM2"
        assert twilio.send_sms.call_count == 2

    @pytest.mark.asyncio
    async def test_rejected_number_fails_result(self, live_sms, mocker):
        """Test rejected number fails result"""
        twilio = mocker.Mock()
        twilio.send_sms.return_value = {"status": "failed", "sid": None, "error": "invalid number"}
        mocker.patch("services.notification.factory.get_twilio_client", return_value=twilio)

        result = await SmsSender().send(["+000"], "", "Body")

        assert result.delivered is False
        assert "invalid number" in result.error


def test_factory_returns_sender_per_channel():
    """Test factory returns sender per channel"""
    factory = NotificationFactory()
    assert isinstance(factory.get_sender(NotificationChannel.EMAIL), EmailSender)
    assert isinstance(factory.get_sender("sms"), SmsSender)


def test_email_message_headers(monkeypatch):
    """Test email message headers"""
    monkeypatch.setattr(Config, "SMTP_HOST", "smtp.example.org")
    monkeypatch.setattr(Config, "EMAIL_FROM", "no-reply@example.org")

    message = SmtpEmailClient().build_message(
        ["a@example.com", "b@example.com"], "Case Resolved", "Body text"
    )

    assert message["To"] == "a@example.com, b@example.com"
    assert message["From"] == "no-reply@example.org"
    assert message["Subject"] == "Case Resolved"
    assert message.get_content().strip() == "Body text"


class TestTwilioClient:
    @pytest.fixture
    def twilio_config(self, monkeypatch):
        monkeypatch.setattr(Config, "TWILIO_ACCOUNT_SID", "AC123")
        monkeypatch.setattr(Config, "TWILIO_AUTH_TOKEN", "secret")
        monkeypatch.setattr(Config, "TWILIO_PHONE_NUMBER", "+15550001111")

    @pytest.fixture
    def rest_client(self, twilio_config, mocker):
        rest = mocker.Mock()
        mocker.patch("libs.twilio_client.Client", return_value=rest)
        return rest

    def test_http_client_is_time_bounded(self, twilio_config, monkeypatch, mocker):
        """Test Twilio requests use the channel timeout"""
        monkeypatch.setattr(Config, "NOTIFICATION_CHANNEL_TIMEOUT_S", 7.5)
        client_cls = mocker.patch("libs.twilio_client.Client")

        TwilioClient()

        http_client = client_cls.call_args.kwargs["http_client"]
        assert isinstance(http_client, TwilioHttpClient)
        assert http_client.timeout == 7.5

    def test_missing_config_raises(self, monkeypatch):
        """Test missing config raises"""
        monkeypatch.setattr(Config, "TWILIO_ACCOUNT_SID", None)

        with pytest.raises(ValueError):
            TwilioClient()

    def test_sends_from_configured_number(self, rest_client):
        """Test sends from configured number"""
        rest_client.messages.create.return_value.sid = "SM42"

        result = TwilioClient().send_sms("+234 801 234 5678", "Your case is closed")

        assert result == {"status": "sent", "sid": "SM42", "to": "+2348012345678", "error": None}
        rest_client.messages.create.assert_called_once_with(
            body="Your case is closed", from_="+15550001111", to="+2348012345678"
        )

    def test_non_e164_number_is_not_sent(self, rest_client):
        """Test non-E.164 number is not sent"""
        result = TwilioClient().send_sms("08012345678", "Body")

        assert result["status"] == "failed"
        rest_client.messages.create.assert_not_called()

    def test_long_body_is_truncated(self, rest_client):
        """Test long body is truncated"""
        TwilioClient().send_sms("+2348012345678", "x" * (MAX_SMS_BODY + 50))

        body = rest_client.messages.create.call_args.kwargs["body"]
        assert len(body) == MAX_SMS_BODY
        assert body.endswith("...")

    def test_provider_rejection_is_reported(self, rest_client):
        """Test provider rejection is reported"""
        rest_client.messages.create.side_effect = TwilioRestException(
            400, "https://api.twilio.com", msg="Unverified number", code=21608
        )

        result = TwilioClient().send_sms("+2348012345678", "Body")

        assert result["status"] == "failed"
        assert "21608" in result["error"]


def test_smtp_connection_is_time_bounded(monkeypatch, mocker):
    """Test SMTP connections use the channel timeout"""
    monkeypatch.setattr(Config, "SMTP_HOST", "smtp.example.org")
    monkeypatch.setattr(Config, "EMAIL_FROM", "no-reply@example.org")
    monkeypatch.setattr(Config, "SMTP_USER", None)
    monkeypatch.setattr(Config, "NOTIFICATION_CHANNEL_TIMEOUT_S", 7.5)
    smtp = mocker.patch("libs.email_client.smtplib.SMTP")

    SmtpEmailClient().send(["ada@example.com"], "Case Resolved", "Body text")

    smtp.assert_called_once_with("smtp.example.org", Config.SMTP_PORT, timeout=7.5)
    smtp.return_value.__enter__.return_value.send_message.assert_called_once()
