"""
Shared column helpers for the ORM models.

Timestamps are stored as UTC. SQLite hands back naive datetimes, so anything
that compares a stored timestamp with the clock goes through `as_utc` first.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

# Primary keys are 32-bit INTEGER columns; a larger id can never match a row
# and would overflow the driver's parameter binding
MAX_ID = 2_147_483_647


def is_valid_id(value: int) -> bool:
    return 1 <= value <= MAX_ID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TimestampMixin:
    """Adds `created_at` / `updated_at`, both set client-side so they are
    readable on the instance right after a flush."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
