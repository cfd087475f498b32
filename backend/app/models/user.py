"""
Inkpost API: User SQLAlchemy Model
====================================

What:  ORM model for the `users` table.
Who:   Auth service (register/login/token lookup), user service, the
       welcome-email trigger and job handler.

Table Design:
    - Integer primary key assigned by the database
    - email is unique (enforced by a unique index and checked at registration)
    - password holds a passlib bcrypt hash, never the plain text
"""

from typing import List, TYPE_CHECKING

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.access_token import PersonalAccessToken
    from app.models.comment import Comment
    from app.models.post import Post


class User(TimestampMixin, Base):
    """
    A registered author.

    Relationships are declared lazy="raise": code that needs a user's posts,
    comments or tokens must load them explicitly in its query.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    posts: Mapped[List["Post"]] = relationship(
        back_populates="author",
        lazy="raise",
        passive_deletes=True,
    )
    comments: Mapped[List["Comment"]] = relationship(
        back_populates="author",
        lazy="raise",
        passive_deletes=True,
    )
    tokens: Mapped[List["PersonalAccessToken"]] = relationship(
        back_populates="user",
        lazy="raise",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
