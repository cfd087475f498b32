"""
Inkpost API: Post Route Handlers
==================================

What:  HTTP endpoints for posts.
How:   Thin handlers: FastAPI validates the body, `get_current_user`
       resolves the caller, PostService does the work, the resource builders
       shape the JSON. No business rules live here.

Endpoints:
    GET       /api/posts?page=N   → 200 page of posts (10 per page)
    POST      /api/posts          → 201 created post
    GET       /api/posts/{id}     → 200 post with comments and their authors
    PUT|PATCH /api/posts/{id}     → 200 updated post (author only)
    DELETE    /api/posts/{id}     → 204 (author only)

Relations the service did not load are left out of the JSON
(`response_model_exclude_unset`).
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.mixins import MAX_ID
from app.models.user import User
from app.schemas.common import DataEnvelope, ErrorResponse, PageEnvelope
from app.schemas.post import PostCreate, PostUpdate
from app.schemas.resources import PostResource, post_resource
from app.services.post_service import post_service

router = APIRouter(prefix="/api", tags=["Posts"])

AUTH_RESPONSES = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}
WRITE_RESPONSES = {
    **AUTH_RESPONSES,
    403: {"description": "Not the author", "model": ErrorResponse},
    404: {"description": "Post not found", "model": ErrorResponse},
    422: {"description": "Validation failed", "model": ErrorResponse},
}


@router.get(
    "/posts",
    response_model=PageEnvelope[PostResource],
    response_model_exclude_unset=True,
    responses=AUTH_RESPONSES,
    summary="List posts",
)
async def list_posts(
    request: Request,
    page: int = Query(default=1, ge=1, le=MAX_ID, description="1-based page number"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    result = await post_service.list_posts(db, user, page=page)
    return PageEnvelope[PostResource](
        data=[post_resource(p) for p in result.items],
        links=result.links(request.url),
        meta=result.meta(request.url),
    )


@router.post(
    "/posts",
    status_code=status.HTTP_201_CREATED,
    response_model=DataEnvelope[PostResource],
    response_model_exclude_unset=True,
    responses={**AUTH_RESPONSES, 422: {"description": "Validation failed", "model": ErrorResponse}},
    summary="Create a post authored by the caller",
)
async def create_post(
    payload: PostCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    post = await post_service.create_post(db, user, payload)
    return DataEnvelope[PostResource](data=post_resource(post))


@router.get(
    "/posts/{post_id}",
    response_model=DataEnvelope[PostResource],
    response_model_exclude_unset=True,
    responses={**AUTH_RESPONSES, 404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Get a post with its comments",
)
async def get_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    post = await post_service.get_post(db, user, post_id)
    return DataEnvelope[PostResource](data=post_resource(post))


@router.api_route(
    "/posts/{post_id}",
    methods=["PUT", "PATCH"],
    response_model=DataEnvelope[PostResource],
    response_model_exclude_unset=True,
    responses=WRITE_RESPONSES,
    summary="Update a post (author only)",
)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    post = await post_service.update_post(db, user, post_id, payload)
    return DataEnvelope[PostResource](data=post_resource(post))


@router.delete(
    "/posts/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={k: v for k, v in WRITE_RESPONSES.items() if k != 422},
    summary="Delete a post and its comments (author only)",
)
async def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await post_service.delete_post(db, user, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
