"""
Inkpost API: Post Service (Business Logic)
============================================

What:  Create, read, update, delete and list posts.
How:   Each operation follows the same pipeline:

           validate → authorize → read / mutate → reload relations
           (schema +     (policies)   (SQLAlchemy)    (selectinload)
            category check)

       A failing step raises and nothing after it runs, so a rejected
       request never touches the posts table.
Who:   Called by the routes in routes/posts.py with the acting user resolved
       by the auth dependency.

Eager loading per operation:
    list    author, category, comments
    create  author, category
    show    author, category, comments.author
    update  author, category
"""

import logging
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app import policies
from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.category import Category
from app.models.comment import Comment
from app.models.mixins import is_valid_id
from app.models.post import Post
from app.models.user import User
from app.schemas.post import PostCreate, PostUpdate
from app.services.pagination import PER_PAGE, Page, paginate

logger = logging.getLogger(__name__)

LIST_OPTIONS = (
    selectinload(Post.author),
    selectinload(Post.category),
    selectinload(Post.comments),
)
WRITE_OPTIONS = (selectinload(Post.author), selectinload(Post.category))
SHOW_OPTIONS = (
    selectinload(Post.author),
    selectinload(Post.category),
    selectinload(Post.comments).selectinload(Comment.author),
)


class PostService:
    """
    Stateless post operations. The session and the acting user are passed
    into every call.
    """

    async def list_posts(self, db: AsyncSession, actor: User, page: int = 1) -> Page[Post]:
        policies.authorize(actor.id, "viewAny", policies.POST)
        stmt = select(Post).options(*LIST_OPTIONS).order_by(Post.id)
        return await paginate(db, stmt, page=page, per_page=PER_PAGE)

    async def create_post(self, db: AsyncSession, actor: User, data: PostCreate) -> Post:
        """
        Creates a post authored by `actor`.

        Raises:
            ValidationError: category_id does not reference a category (→ 422)
            DatabaseError:   insert failed (→ 500)
        """
        await self._ensure_category_exists(db, data.category_id)
        policies.authorize(actor.id, "create", policies.POST)

        post = Post(
            user_id=actor.id,
            category_id=data.category_id,
            title=data.title,
            body=data.body,
        )
        try:
            db.add(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create post for user %s: %s", actor.id, str(e))
            raise DatabaseError(context={"user_id": actor.id})

        logger.info("Post %s created by user %s", post.id, actor.id)
        return await self._load(db, post.id, WRITE_OPTIONS)

    async def get_post(self, db: AsyncSession, actor: User, post_id: int) -> Post:
        post = await self._load(db, post_id, SHOW_OPTIONS)
        policies.authorize(actor.id, "view", policies.POST, post.user_id)
        return post

    async def update_post(
        self, db: AsyncSession, actor: User, post_id: int, data: PostUpdate
    ) -> Post:
        """
        Applies the fields present in `data`. Ownership (`user_id`) is never
        changed.

        Raises:
            NotFoundError:      no such post (→ 404)
            ValidationError:    new category_id is unknown (→ 422)
            AuthorizationError: actor is not the author (→ 403)
        """
        post = await self._load(db, post_id)
        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            await self._ensure_category_exists(db, changes["category_id"])
        policies.authorize(actor.id, "update", policies.POST, post.user_id)

        for field, value in changes.items():
            setattr(post, field, value)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update post %s: %s", post_id, str(e))
            raise DatabaseError(context={"post_id": post_id})

        logger.info("Post %s updated by user %s (%s)", post_id, actor.id, ", ".join(changes) or "no changes")
        return await self._load(db, post_id, WRITE_OPTIONS)

    async def delete_post(self, db: AsyncSession, actor: User, post_id: int) -> None:
        """Deletes the post; the database cascades the delete to its comments."""
        post = await self._load(db, post_id)
        policies.authorize(actor.id, "delete", policies.POST, post.user_id)
        try:
            await db.delete(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete post %s: %s", post_id, str(e))
            raise DatabaseError(context={"post_id": post_id})
        logger.info("Post %s deleted by user %s", post_id, actor.id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, post_id: int, options: Sequence[Any] = ()) -> Post:
        if not is_valid_id(post_id):
            raise NotFoundError(resource="Post", resource_id=post_id)
        # populate_existing: the post may already be in the identity map
        # without the relations requested here
        stmt = (
            select(Post)
            .where(Post.id == post_id)
            .options(*options)
            .execution_options(populate_existing=True)
        )
        post = (await db.execute(stmt)).scalar_one_or_none()
        if post is None:
            raise NotFoundError(resource="Post", resource_id=post_id)
        return post

    async def _ensure_category_exists(self, db: AsyncSession, category_id: int) -> None:
        if not is_valid_id(category_id) or await db.get(Category, category_id) is None:
            raise ValidationError.for_field("category_id", "The selected category id is invalid.")


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
