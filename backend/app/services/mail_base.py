"""
Inkpost API: Abstract Mail Sender Interface
=============================================

What:  The contract every mail transport implements, plus the message type
       passed to it.
How:   Concrete senders (services/mailers.py) inherit from MailSender. The
       active one is chosen by MAIL_DRIVER, so the welcome-email job never
       knows which transport it talks to.
Who:   The send_welcome_email job handler and the health endpoint.

Implementations:
    - LogMailSender:  writes the message to the application log (development)
    - SMTPMailSender: delivers through an SMTP server with aiosmtplib
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MailMessage:
    to_address: str
    subject: str
    html: str
    to_name: Optional[str] = None
    from_address: Optional[str] = None
    from_name: Optional[str] = None


class MailSender(ABC):
    """
    Abstract mail transport.

    Contract:
        - send() either delivers the message or raises MailDeliveryError
        - Implementations handle their own retries for transient failures
        - health_check() never raises
    """

    name: str = "abstract"

    @abstractmethod
    async def send(self, message: MailMessage) -> None:
        """
        Deliver one message.

        Raises:
            MailDeliveryError: The transport gave up (after its retries).
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the transport is reachable right now."""
        ...
