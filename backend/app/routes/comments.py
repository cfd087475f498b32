"""
Inkpost API: Comment Route Handlers
=====================================

Endpoints (all nested under a post; a comment from another post is 404):
    GET       /api/posts/{post_id}/comments?page=N         → 200 page of comments
    POST      /api/posts/{post_id}/comments                → 201 created comment
    GET       /api/posts/{post_id}/comments/{comment_id}   → 200
    PUT|PATCH /api/posts/{post_id}/comments/{comment_id}   → 200 (author only)
    DELETE    /api/posts/{post_id}/comments/{comment_id}   → 204 (author only)
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.mixins import MAX_ID
from app.models.user import User
from app.schemas.common import DataEnvelope, ErrorResponse, PageEnvelope
from app.schemas.post import CommentWrite
from app.schemas.resources import CommentResource, comment_resource
from app.services.comment_service import comment_service

router = APIRouter(prefix="/api/posts/{post_id}/comments", tags=["Comments"])

NOT_FOUND = {404: {"description": "Post or comment not found", "model": ErrorResponse}}
UNAUTHENTICATED = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}
FORBIDDEN = {403: {"description": "Not the comment's author", "model": ErrorResponse}}
INVALID = {422: {"description": "Validation failed", "model": ErrorResponse}}


@router.get(
    "",
    response_model=PageEnvelope[CommentResource],
    response_model_exclude_unset=True,
    responses={**UNAUTHENTICATED, **NOT_FOUND},
    summary="List a post's comments",
)
async def list_comments(
    post_id: int,
    request: Request,
    page: int = Query(default=1, ge=1, le=MAX_ID),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    result = await comment_service.list_comments(db, user, post_id, page=page)
    return PageEnvelope[CommentResource](
        data=[comment_resource(c) for c in result.items],
        links=result.links(request.url),
        meta=result.meta(request.url),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DataEnvelope[CommentResource],
    response_model_exclude_unset=True,
    responses={**UNAUTHENTICATED, **NOT_FOUND, **INVALID},
    summary="Comment on a post",
)
async def create_comment(
    post_id: int,
    payload: CommentWrite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    comment = await comment_service.create_comment(db, user, post_id, payload)
    return DataEnvelope[CommentResource](data=comment_resource(comment))


@router.get(
    "/{comment_id}",
    response_model=DataEnvelope[CommentResource],
    response_model_exclude_unset=True,
    responses={**UNAUTHENTICATED, **NOT_FOUND},
)
async def get_comment(
    post_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    comment = await comment_service.get_comment(db, user, post_id, comment_id)
    return DataEnvelope[CommentResource](data=comment_resource(comment))


@router.api_route(
    "/{comment_id}",
    methods=["PUT", "PATCH"],
    response_model=DataEnvelope[CommentResource],
    response_model_exclude_unset=True,
    responses={**UNAUTHENTICATED, **FORBIDDEN, **NOT_FOUND, **INVALID},
    summary="Edit a comment (author only)",
)
async def update_comment(
    post_id: int,
    comment_id: int,
    payload: CommentWrite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    comment = await comment_service.update_comment(db, user, post_id, comment_id, payload)
    return DataEnvelope[CommentResource](data=comment_resource(comment))


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**UNAUTHENTICATED, **FORBIDDEN, **NOT_FOUND},
    summary="Delete a comment (author only)",
)
async def delete_comment(
    post_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await comment_service.delete_comment(db, user, post_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
