"""
Inkpost API: Personal Access Token Model
==========================================

What:  One row per issued bearer token.
How:   The client receives "<id>|<plain token>". Only the SHA-256 hex digest of
       the plain part is stored, so a database leak does not leak usable tokens.
Who:   AuthService (issue, resolve, revoke).

Columns:
    - token:        SHA-256 hex digest (64 chars), unique
    - last_used_at: refreshed on every authenticated request
    - expires_at:   NULL means the token never expires
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin, as_utc

if TYPE_CHECKING:
    from app.models.user import User


class PersonalAccessToken(TimestampMixin, Base):
    __tablename__ = "personal_access_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    user: Mapped["User"] = relationship(back_populates="tokens", lazy="raise")

    def is_expired(self, now: datetime) -> bool:
        expires_at = as_utc(self.expires_at)
        return expires_at is not None and expires_at <= now

    def __repr__(self) -> str:
        return f"<PersonalAccessToken(id={self.id}, user_id={self.user_id}, name='{self.name}')>"
