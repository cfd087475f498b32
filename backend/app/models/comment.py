"""
Inkpost API: Comment SQLAlchemy Model
=======================================

What:  ORM model for the `comments` table.
How:   Declarative mapping on the shared Base; Alembic migration 001 creates
       the same table.
Who:   CommentService for reads and writes; Post.comments for the nested
       listing in a post response.
When:  Created by POST /api/posts/{post_id}/comments; removed by its own
       DELETE or by the database when its post or author is deleted.

Table Design:
    - post_id / user_id: set once at creation. Updates only change `body`.
    - ON DELETE CASCADE on both foreign keys, so deleting a post never
      leaves comments behind (SQLite needs `PRAGMA foreign_keys=ON`, see
      database.py).
    - Both foreign keys are indexed: comments are listed per post and the
      cascade looks them up per user.
    - body: Text, capped at 1000 characters by the request schema rather
      than the column.

Relationships use lazy="raise": a response that needs `author` or `post`
must ask for it with selectinload, otherwise the access fails loudly
instead of issuing a query from async code.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.post import Post
    from app.models.user import User


class Comment(TimestampMixin, Base):
    """A reader's reply to a post."""

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    post: Mapped["Post"] = relationship(back_populates="comments", lazy="raise")
    author: Mapped["User"] = relationship(back_populates="comments", lazy="raise")

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, post_id={self.post_id}, user_id={self.user_id})>"
