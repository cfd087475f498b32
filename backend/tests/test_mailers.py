"""
Inkpost API: Mail Transport Tests (Mocked)
============================================

What:  LogMailSender and SMTPMailSender.
Why:   Tests must not talk to a real SMTP server.
How:   Patches aiosmtplib.send to succeed or fail; the tenacity waits are
       zero in the test environment so retries run instantly.

What we test:
    ✅ SMTP message has From/To/Subject and an HTML alternative
    ✅ Transient SMTP errors are retried and can recover
    ✅ Exhausted retries raise MailDeliveryError
    ✅ The driver setting selects the transport
"""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from app.config import settings
from app.exceptions import MailDeliveryError
from app.services.mail_base import MailMessage
from app.services.mailers import LogMailSender, SMTPMailSender, get_mail_sender

MESSAGE = MailMessage(
    to_address="ada@example.com",
    to_name="Ada",
    subject="Welcome to Inkpost",
    html="<p>Hello, Ada!</p>",
)


class TestSMTPMailSender:

    def setup_method(self):
        self.sender = SMTPMailSender(host="smtp.test", port=2525, username="", password="")

    def test_build_message(self):
        email = self.sender.build_message(MESSAGE)

        assert email["To"] == "Ada <ada@example.com>"
        assert email["Subject"] == "Welcome to Inkpost"
        assert settings.mail_from_address in email["From"]
        html_part = email.get_body(preferencelist=("html",))
        assert "Hello, Ada!" in html_part.get_content()

    @pytest.mark.asyncio
    async def test_send_success(self):
        with patch("app.services.mailers.aiosmtplib.send", new_callable=AsyncMock) as mock_send:
            await self.sender.send(MESSAGE)

        mock_send.assert_awaited_once()
        assert mock_send.await_args.kwargs["hostname"] == "smtp.test"
        assert mock_send.await_args.kwargs["port"] == 2525

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self):
        failure = aiosmtplib.SMTPServerDisconnected("connection lost")
        with patch(
            "app.services.mailers.aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=[failure, None],
        ) as mock_send:
            await self.sender.send(MESSAGE)

        assert mock_send.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise(self):
        with patch(
            "app.services.mailers.aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=ConnectionRefusedError("refused"),
        ) as mock_send:
            with pytest.raises(MailDeliveryError) as exc_info:
                await self.sender.send(MESSAGE)

        assert mock_send.await_count == settings.retry_max_attempts
        assert exc_info.value.context["error_type"] == "ConnectionRefusedError"

    @pytest.mark.asyncio
    async def test_health_check_unreachable(self):
        with patch.object(aiosmtplib.SMTP, "connect", new_callable=AsyncMock, side_effect=OSError("down")):
            assert await self.sender.health_check() is False


class TestLogMailSender:

    @pytest.mark.asyncio
    async def test_send_and_health(self):
        sender = LogMailSender()

        await sender.send(MESSAGE)

        assert await sender.health_check() is True


class TestDriverSelection:

    def test_log_driver(self):
        assert isinstance(get_mail_sender(), LogMailSender)

    def test_smtp_driver(self):
        with patch.object(settings, "mail_driver", "smtp"):
            assert isinstance(get_mail_sender(), SMTPMailSender)
