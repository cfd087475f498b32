"""
Inkpost API: Resource Serializers
===================================

What:  Deterministic entity → JSON mapping for users, categories, posts and
       comments.
How:   `*_resource()` builders read an ORM instance and fill a Pydantic model.
       A relation is copied only if the query that produced the instance
       eager-loaded it (checked with `sqlalchemy.inspect(...).unloaded`);
       otherwise the field is left unset and routes drop it with
       `response_model_exclude_unset=True`. Builders never trigger a query.

Shapes:
    User:     {id, name, email}
    Category: {id, name}
    Comment:  {id, author?, body, created_at}
    Post:     {id, author?, category?, title, body, comments?, created_at, updated_at}

Timestamps are rendered as "YYYY-MM-DD HH:MM:SS" in UTC.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import inspect

from app.models.category import Category
from app.models.comment import Comment
from app.models.mixins import as_utc
from app.models.post import Post
from app.models.user import User

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class UserResource(BaseModel):
    id: int
    name: str
    email: str


class CategoryResource(BaseModel):
    id: int
    name: str


class CommentResource(BaseModel):
    id: int
    author: Optional[UserResource] = None
    body: str
    created_at: str


class PostResource(BaseModel):
    id: int
    author: Optional[UserResource] = None
    category: Optional[CategoryResource] = None
    title: str
    body: str
    comments: Optional[List[CommentResource]] = None
    created_at: str
    updated_at: str


def format_timestamp(value: datetime) -> str:
    return as_utc(value).strftime(TIMESTAMP_FORMAT)


def is_loaded(instance: object, relation: str) -> bool:
    """True when `relation` was populated on `instance` by an eager load."""
    return relation not in inspect(instance).unloaded


def user_resource(user: User) -> UserResource:
    return UserResource(id=user.id, name=user.name, email=user.email)


def category_resource(category: Category) -> CategoryResource:
    return CategoryResource(id=category.id, name=category.name)


def comment_resource(comment: Comment) -> CommentResource:
    fields = {
        "id": comment.id,
        "body": comment.body,
        "created_at": format_timestamp(comment.created_at),
    }
    if is_loaded(comment, "author") and comment.author is not None:
        fields["author"] = user_resource(comment.author)
    return CommentResource(**fields)


def post_resource(post: Post) -> PostResource:
    fields = {
        "id": post.id,
        "title": post.title,
        "body": post.body,
        "created_at": format_timestamp(post.created_at),
        "updated_at": format_timestamp(post.updated_at),
    }
    if is_loaded(post, "author") and post.author is not None:
        fields["author"] = user_resource(post.author)
    if is_loaded(post, "category") and post.category is not None:
        fields["category"] = category_resource(post.category)
    if is_loaded(post, "comments"):
        fields["comments"] = [comment_resource(c) for c in post.comments]
    return PostResource(**fields)
