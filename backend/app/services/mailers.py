"""
Inkpost API: Mail Sender Implementations
==========================================

What:  The `log` and `smtp` mail transports and the factory choosing between
       them.
How:   LogMailSender only logs. SMTPMailSender builds an
       `email.message.EmailMessage` and hands it to aiosmtplib, retrying
       transient SMTP and network failures with tenacity.

Retry policy (SMTP):
    attempts:  RETRY_MAX_ATTEMPTS (default 3)
    wait:      exponential with jitter, RETRY_MIN_WAIT → RETRY_MAX_WAIT seconds
    retried:   aiosmtplib.SMTPException, OSError (refused/reset connections)
    exhausted: MailDeliveryError; the queue worker then releases the job
               for a later attempt or fails it
"""

import logging
import time
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import aiosmtplib
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import MailDeliveryError
from app.services.mail_base import MailMessage, MailSender

logger = logging.getLogger(__name__)


class LogMailSender(MailSender):
    """Development transport: every message goes to the log at INFO."""

    name = "log"

    async def send(self, message: MailMessage) -> None:
        logger.info(
            "Mail to %s <%s>: %s\n%s",
            message.to_name or "",
            message.to_address,
            message.subject,
            message.html,
        )

    async def health_check(self) -> bool:
        return True


class SMTPMailSender(MailSender):
    """
    SMTP transport via aiosmtplib.

    One connection per message. Welcome emails are rare, so a pooled SMTP
    connection would mostly sit idle.
    """

    name = "smtp"

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        start_tls: Optional[bool] = None,
        timeout: Optional[int] = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username if username is not None else settings.smtp_username
        self.password = password if password is not None else settings.smtp_password
        self.start_tls = settings.smtp_start_tls if start_tls is None else start_tls
        self.timeout = timeout or settings.smtp_timeout

    def build_message(self, message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = formataddr((
            message.from_name or settings.mail_from_name,
            message.from_address or settings.mail_from_address,
        ))
        email["To"] = formataddr((message.to_name or "", message.to_address))
        email["Subject"] = message.subject
        email.set_content("This message requires an HTML-capable mail client.")
        email.add_alternative(message.html, subtype="html")
        return email

    async def send(self, message: MailMessage) -> None:
        start_time = time.perf_counter()
        try:
            await self._send_with_retry(self.build_message(message))
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed after retries: %s", message.to_address, str(e))
            raise MailDeliveryError(
                message="Mail delivery failed after multiple attempts.",
                context={
                    "to": message.to_address,
                    "host": self.host,
                    "attempts": settings.retry_max_attempts,
                    "error_type": type(e).__name__,
                },
            )

        logger.info(
            "Mail delivered to %s via %s:%d in %.0fms",
            message.to_address,
            self.host,
            self.port,
            (time.perf_counter() - start_time) * 1000,
        )

    @retry(
        retry=retry_if_exception_type((aiosmtplib.SMTPException, OSError)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _send_with_retry(self, email: EmailMessage) -> None:
        await aiosmtplib.send(
            email,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.start_tls,
            timeout=self.timeout,
        )

    async def health_check(self) -> bool:
        client = aiosmtplib.SMTP(hostname=self.host, port=self.port, timeout=5)
        try:
            await client.connect()
            await client.quit()
            return True
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning("SMTP health check failed for %s:%d: %s", self.host, self.port, str(e))
            return False


def get_mail_sender() -> MailSender:
    """Returns the transport selected by MAIL_DRIVER."""
    if settings.mail_driver == "smtp":
        return SMTPMailSender()
    return LogMailSender()
