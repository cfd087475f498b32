"""
Inkpost API: User and Category Route Handlers
===============================================

Endpoints:
    GET /api/users/{user_id}  → 200 {data: user} or 404 {"message": "User not found."}
    GET /api/categories       → 200 {data: [category, ...]} ordered by id
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import DataEnvelope, ErrorResponse
from app.schemas.resources import (
    CategoryResource,
    UserResource,
    category_resource,
    user_resource,
)
from app.services.category_service import category_service
from app.services.user_service import user_service

router = APIRouter(prefix="/api", tags=["Users"])


@router.get(
    "/users/{user_id}",
    response_model=DataEnvelope[UserResource],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get any user's public profile",
)
async def get_user(
    user_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    user = await user_service.get_user(db, user_id)
    return DataEnvelope[UserResource](data=user_resource(user))


@router.get(
    "/categories",
    response_model=DataEnvelope[List[CategoryResource]],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    tags=["Categories"],
    summary="List categories",
)
async def list_categories(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    categories = await category_service.list_categories(db)
    return DataEnvelope[List[CategoryResource]](data=[category_resource(c) for c in categories])
