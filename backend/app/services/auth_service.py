"""
Inkpost API: Authentication Service
=====================================

What:  Registration, login, bearer-token issuing/resolution and logout.
How:   Passwords are hashed with passlib (bcrypt). Tokens are opaque
       personal access tokens:

           client holds   "42|Jq8...40 random chars..."
                           │   └── secret, never stored
                           └────── token row id
           database holds  sha256(secret) as hex

       Resolving a token looks the row up by id and compares digests in
       constant time. A token without the "id|" prefix is looked up by digest.
Who:   routes/auth.py and the `get_current_user` dependency.

Token lifetime:
    TOKEN_EXPIRATION_MINUTES (default one week); empty means tokens never
    expire. Expired tokens are rejected with 401 but not deleted.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.exceptions import AuthenticationError, QueueUnavailableError, ValidationError
from app.models.access_token import PersonalAccessToken
from app.models.mixins import is_valid_id, utcnow
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest
from app.services.user_service import user_service
from app.services.welcome_email import queue_welcome_email

logger = logging.getLogger(__name__)

TOKEN_NAME = "auth_token"
SECRET_LENGTH = 40

EMAIL_TAKEN = "The email has already been taken."
BAD_CREDENTIALS = "The provided credentials are incorrect."

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def hash_token(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def _new_secret() -> str:
    # token_urlsafe(30) encodes 30 random bytes as exactly 40 characters
    return secrets.token_urlsafe(30)[:SECRET_LENGTH]


class AuthService:

    async def register(self, db: AsyncSession, data: RegisterRequest) -> Tuple[User, str]:
        """
        Creates the user and issues their first token, commits, then queues
        the welcome email. A broker outage is logged and does not fail the
        registration.

        Raises:
            ValidationError: email already registered (→ 422)
        """
        if await user_service.find_by_email(db, data.email) is not None:
            raise ValidationError.for_field("email", EMAIL_TAKEN)

        user = User(name=data.name, email=data.email, password=hash_password(data.password))
        try:
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email;
            # the request's session is rolled back by get_db_session
            raise ValidationError.for_field("email", EMAIL_TAKEN)

        plain = await self.issue_token(db, user)
        # The task reads the user from its own connection, so the row must be
        # committed before the message is published
        await db.commit()
        try:
            await queue_welcome_email(user)
        except QueueUnavailableError as e:
            logger.warning("Welcome email for user %s not queued: %r", user.id, e.context)
        logger.info("User %s registered", user.id)
        return user, plain

    async def login(self, db: AsyncSession, data: LoginRequest) -> Tuple[User, str]:
        """
        Raises:
            ValidationError: unknown email or wrong password, reported the
                             same way on the email field (→ 422)
        """
        user = await user_service.find_by_email(db, data.email)
        if user is None:
            # Spend the same time as a real check so timing doesn't reveal
            # which emails are registered
            pwd_context.dummy_verify()
            raise ValidationError.for_field("email", BAD_CREDENTIALS)
        if not verify_password(data.password, user.password):
            logger.info("Failed login for user %s", user.id)
            raise ValidationError.for_field("email", BAD_CREDENTIALS)

        plain = await self.issue_token(db, user)
        logger.info("User %s logged in", user.id)
        return user, plain

    # ── Tokens ────────────────────────────────────────────────────────────

    async def issue_token(
        self,
        db: AsyncSession,
        user: User,
        name: str = TOKEN_NAME,
        expires_in_minutes: Optional[int] = None,
    ) -> str:
        """Stores a new token for `user` and returns its plain form "id|secret"."""
        minutes = expires_in_minutes or settings.token_expiration_minutes
        secret = _new_secret()
        token = PersonalAccessToken(
            user_id=user.id,
            name=name,
            token=hash_token(secret),
            expires_at=utcnow() + timedelta(minutes=minutes) if minutes else None,
        )
        db.add(token)
        await db.flush()
        return f"{token.id}|{secret}"

    async def resolve_token(self, db: AsyncSession, plain: str) -> PersonalAccessToken:
        """
        Returns the stored token (with its user loaded) and refreshes
        `last_used_at`.

        Raises:
            AuthenticationError: malformed, unknown or expired token (→ 401)
        """
        stmt = select(PersonalAccessToken).options(selectinload(PersonalAccessToken.user))
        if "|" in plain:
            token_id, secret = plain.split("|", 1)
            # str.isdigit accepts superscripts and other digits int() rejects
            if not (token_id.isascii() and token_id.isdigit()) or not is_valid_id(int(token_id)):
                raise AuthenticationError(context={"reason": "malformed"})
            stmt = stmt.where(PersonalAccessToken.id == int(token_id))
        else:
            secret = plain
            stmt = stmt.where(PersonalAccessToken.token == hash_token(secret))

        token = (await db.execute(stmt)).scalar_one_or_none()
        if token is None or not hmac.compare_digest(token.token, hash_token(secret)):
            raise AuthenticationError(context={"reason": "unknown"})

        now = utcnow()
        if token.is_expired(now):
            raise AuthenticationError(context={"reason": "expired", "token_id": token.id})

        token.last_used_at = now
        await db.flush()
        return token

    async def revoke_token(self, db: AsyncSession, token: PersonalAccessToken) -> None:
        await db.delete(token)
        await db.flush()
        logger.info("Token %s revoked for user %s", token.id, token.user_id)

    async def revoke_all_tokens(self, db: AsyncSession, user: User) -> int:
        result = await db.execute(
            delete(PersonalAccessToken).where(PersonalAccessToken.user_id == user.id)
        )
        logger.info("Revoked %d token(s) for user %s", result.rowcount, user.id)
        return result.rowcount


auth_service = AuthService()
