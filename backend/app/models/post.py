"""
Inkpost API: Post SQLAlchemy Model
====================================

What:  ORM model for the `posts` table.
Who:   PostService (CRUD), CommentService (parent lookup), resource serializers.

Table Design:
    - user_id: author, fixed at creation; updates never touch it
    - category_id: must reference an existing category at creation/update time
    - title: VARCHAR(255); body: TEXT
    - Deleting a post deletes its comments (ON DELETE CASCADE on comments.post_id)

Query Patterns:
    - Paginated listing ordered by id, with author/category/comments eager-loaded
    - Single post by id, with author/category/comments.author eager-loaded
"""

from typing import List, TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.category import Category
    from app.models.comment import Comment
    from app.models.user import User


class Post(TimestampMixin, Base):
    """
    A blog post written by one user in one category.

    Lifecycle:
        1. Created by an authenticated user (author = caller)
        2. Updated only by its author (title, body, category)
        3. Deleted only by its author; comments go with it
    """

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    author: Mapped["User"] = relationship(back_populates="posts", lazy="raise")
    category: Mapped["Category"] = relationship(back_populates="posts", lazy="raise")
    # passive_deletes: the database removes the comments, the ORM never loads them
    comments: Mapped[List["Comment"]] = relationship(
        back_populates="post",
        lazy="raise",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.id",
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, user_id={self.user_id}, title='{self.title}')>"
