"""
Inkpost API: Comment Service
==============================

What:  Comment operations nested under a post.
How:   Every call first resolves the post from the URL, then the comment
       within that post. A comment id that exists but belongs to another
       post is reported as 404, the same as an unknown id.
Who:   routes/comments.py.

Order of checks (first failure wins):
    1. post exists                        → NotFoundError "Post not found."
    2. comment exists on that post        → NotFoundError "Comment not found."
    3. policy allows the action           → AuthorizationError (403)
    4. write succeeds                     → DatabaseError (500) otherwise

Any authenticated user may list, read and create comments. Only the
comment's author may update or delete it; the author of the post has no
extra rights over other people's comments.

Every returned comment has its author loaded.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app import policies
from app.exceptions import DatabaseError, NotFoundError
from app.models.comment import Comment
from app.models.mixins import is_valid_id
from app.models.post import Post
from app.models.user import User
from app.schemas.post import CommentWrite
from app.services.pagination import PER_PAGE, Page, paginate

logger = logging.getLogger(__name__)


class CommentService:

    async def list_comments(
        self, db: AsyncSession, actor: User, post_id: int, page: int = 1
    ) -> Page[Comment]:
        """Comments of one post, oldest first, PER_PAGE per page."""
        await self._ensure_post_exists(db, post_id)
        policies.authorize(actor.id, "viewAny", policies.COMMENT)
        stmt = (
            select(Comment)
            .where(Comment.post_id == post_id)
            .options(selectinload(Comment.author))
            .order_by(Comment.id)
        )
        return await paginate(db, stmt, page=page, per_page=PER_PAGE)

    async def create_comment(
        self, db: AsyncSession, actor: User, post_id: int, data: CommentWrite
    ) -> Comment:
        """
        Adds a comment by `actor`. The author always comes from the token,
        never from the request body.

        Raises:
            NotFoundError: no such post (→ 404)
            DatabaseError: the insert failed (→ 500)
        """
        await self._ensure_post_exists(db, post_id)
        policies.authorize(actor.id, "create", policies.COMMENT)

        comment = Comment(post_id=post_id, user_id=actor.id, body=data.body)
        try:
            db.add(comment)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create comment on post %s: %s", post_id, str(e))
            raise DatabaseError(context={"post_id": post_id, "user_id": actor.id})

        logger.info("Comment %s added to post %s by user %s", comment.id, post_id, actor.id)
        return await self._load(db, post_id, comment.id)

    async def get_comment(
        self, db: AsyncSession, actor: User, post_id: int, comment_id: int
    ) -> Comment:
        comment = await self._load(db, post_id, comment_id)
        policies.authorize(actor.id, "view", policies.COMMENT, comment.user_id)
        return comment

    async def update_comment(
        self, db: AsyncSession, actor: User, post_id: int, comment_id: int, data: CommentWrite
    ) -> Comment:
        """Replaces the body. The comment keeps its author and its post."""
        comment = await self._load(db, post_id, comment_id)
        policies.authorize(actor.id, "update", policies.COMMENT, comment.user_id)

        comment.body = data.body
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update comment %s: %s", comment_id, str(e))
            raise DatabaseError(context={"comment_id": comment_id})

        logger.info("Comment %s updated by user %s", comment_id, actor.id)
        return await self._load(db, post_id, comment_id)

    async def delete_comment(
        self, db: AsyncSession, actor: User, post_id: int, comment_id: int
    ) -> None:
        """
        Raises:
            NotFoundError:      unknown post, or comment not on this post (→ 404)
            AuthorizationError: actor is not the comment author (→ 403)
        """
        comment = await self._load(db, post_id, comment_id)
        policies.authorize(actor.id, "delete", policies.COMMENT, comment.user_id)
        try:
            await db.delete(comment)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete comment %s: %s", comment_id, str(e))
            raise DatabaseError(context={"comment_id": comment_id})
        logger.info("Comment %s deleted by user %s", comment_id, actor.id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _ensure_post_exists(self, db: AsyncSession, post_id: int) -> None:
        if not is_valid_id(post_id) or await db.get(Post, post_id) is None:
            raise NotFoundError(resource="Post", resource_id=post_id)

    async def _load(self, db: AsyncSession, post_id: int, comment_id: int) -> Comment:
        await self._ensure_post_exists(db, post_id)
        if not is_valid_id(comment_id):
            raise NotFoundError(resource="Comment", resource_id=comment_id)
        stmt = (
            select(Comment)
            .where(Comment.id == comment_id, Comment.post_id == post_id)
            .options(selectinload(Comment.author))
            .execution_options(populate_existing=True)
        )
        comment = (await db.execute(stmt)).scalar_one_or_none()
        if comment is None:
            raise NotFoundError(resource="Comment", resource_id=comment_id)
        return comment


comment_service = CommentService()
