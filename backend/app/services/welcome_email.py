"""
Inkpost API: Welcome Email
============================

What:  The two halves of the welcome email: queueing the Celery task
       (producer) and sending the message when a worker runs it (consumer).
Who:   `dispatch_welcome_email` is called by the `inkpost send-welcome-email`
       command; registration calls `queue_welcome_email` after its commit.
       `send_welcome_email` runs inside `inkpost queue-work`.

Dispatch rules:
    neither --id nor --email     → MissingSelectorError, nothing queued
    both --id and --email        → MissingSelectorError, nothing queued
    no user matches              → UserNotFoundError, nothing queued
                                   (a non-numeric id never matches)
    user found                   → one `send_welcome_email` task with
                                   kwargs {"user_id": ..., "email": ...}

Delivery:
    MailDeliveryError is retried every `queue_backoff` seconds until
    `queue_max_tries` attempts have been made; the task then ends in FAILURE.
    A user deleted since the task was queued fails it at once.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import aiofiles
from jinja2 import Environment, select_autoescape
from kombu.exceptions import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import isolated_session
from app.exceptions import (
    MailDeliveryError,
    MissingSelectorError,
    PermanentJobError,
    QueueUnavailableError,
    UserNotFoundError,
)
from app.models.user import User
from app.services.mail_base import MailMessage
from app.services.mailers import get_mail_sender
from app.services.user_service import user_service
from app.worker import celery_app

logger = logging.getLogger(__name__)

WELCOME_EMAIL_TASK = "send_welcome_email"

TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "emails" / "welcome.html"

_jinja = Environment(autoescape=select_autoescape(["html"]))


def _is_blank(value: Optional[Union[int, str]]) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


async def resolve_user(
    db: AsyncSession,
    user_id: Optional[Union[int, str]] = None,
    email: Optional[str] = None,
) -> User:
    """Finds the user named by exactly one of `user_id` / `email`."""
    if _is_blank(user_id) and _is_blank(email):
        raise MissingSelectorError()
    if not _is_blank(user_id) and not _is_blank(email):
        raise MissingSelectorError("Please provide either --id or --email option, not both.")

    if not _is_blank(user_id):
        try:
            numeric_id = int(str(user_id).strip())
        except ValueError:
            raise UserNotFoundError("id", user_id)
        user = await user_service.find_by_id(db, numeric_id)
        if user is None:
            raise UserNotFoundError("id", user_id)
        return user

    user = await user_service.find_by_email(db, email.strip())
    if user is None:
        raise UserNotFoundError("email", email)
    return user


async def dispatch_welcome_email(
    db: AsyncSession,
    user_id: Optional[Union[int, str]] = None,
    email: Optional[str] = None,
) -> User:
    """
    Queues a welcome email for the selected user and returns that user.

    Raises:
        MissingSelectorError:  neither or both selectors given
        UserNotFoundError:     the selector matched no user
        QueueUnavailableError: the broker refused the task message
    """
    user = await resolve_user(db, user_id=user_id, email=email)
    await queue_welcome_email(user)
    return user


async def queue_welcome_email(user: User) -> None:
    """Publishes exactly one `send_welcome_email` task for `user`."""
    try:
        # .delay() talks to the broker synchronously
        await asyncio.to_thread(send_welcome_email.delay, user_id=user.id, email=user.email)
    except OperationalError as e:
        raise QueueUnavailableError(
            context={"user_id": user.id, "error_type": type(e).__name__, "error": str(e)}
        )
    logger.info("Welcome email queued for user %s (%s)", user.id, user.email)


async def render_welcome_email(user: User) -> MailMessage:
    async with aiofiles.open(TEMPLATE_PATH, "r", encoding="utf-8") as f:
        source = await f.read()
    html = _jinja.from_string(source).render(user=user, app_name=settings.app_name)
    return MailMessage(
        to_address=user.email,
        to_name=user.name,
        subject=f"Welcome to {settings.app_name}",
        html=html,
        from_address=settings.mail_from_address,
        from_name=settings.mail_from_name,
    )


async def deliver_welcome_email(user_id: int) -> None:
    async with isolated_session() as db:
        user = await user_service.find_by_id(db, user_id)
        if user is None:
            raise PermanentJobError(
                f"User {user_id} no longer exists", context={"user_id": user_id}
            )
        message = await render_welcome_email(user)
    await get_mail_sender().send(message)
    logger.info("Welcome email sent to user %s", user_id)


@celery_app.task(
    name=WELCOME_EMAIL_TASK,
    autoretry_for=(MailDeliveryError,),
    max_retries=settings.queue_max_tries - 1,
    default_retry_delay=settings.queue_backoff,
    acks_late=True,
)
def send_welcome_email(user_id: int, email: str) -> None:
    """
    Celery task. Transport errors surface as MailDeliveryError and are
    retried; PermanentJobError is not.
    """
    logger.info("Delivering welcome email to user %s (%s)", user_id, email)
    asyncio.run(deliver_welcome_email(user_id))
