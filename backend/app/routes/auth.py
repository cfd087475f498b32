"""
Inkpost API: Authentication Route Handlers
============================================

Endpoints:
    POST /api/register    → 201 {access_token, token_type}; queues the welcome email
    POST /api/login       → 200 {access_token, token_type}; throttled per IP
    GET  /api/user        → 200 {data: user}
    POST /api/logout      → 200, revokes the token used for this request
    POST /api/logout-all  → 200, revokes every token of the caller
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_token, get_current_user
from app.models.access_token import PersonalAccessToken
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.common import DataEnvelope, ErrorResponse, MessageResponse
from app.schemas.resources import UserResource, user_resource
from app.services.auth_service import auth_service

router = APIRouter(prefix="/api", tags=["Authentication"])

UNAUTHENTICATED = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=TokenResponse,
    responses={422: {"description": "Validation failed", "model": ErrorResponse}},
    summary="Create an account and get a token",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    _, token = await auth_service.register(db, payload)
    return TokenResponse(access_token=token)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        422: {"description": "Invalid credentials", "model": ErrorResponse},
        429: {"description": "Too many login attempts", "model": ErrorResponse},
    },
    summary="Exchange credentials for a token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    _, token = await auth_service.login(db, payload)
    return TokenResponse(access_token=token)


@router.get(
    "/user",
    response_model=DataEnvelope[UserResource],
    responses=UNAUTHENTICATED,
    summary="The authenticated user",
)
async def current_user(user: User = Depends(get_current_user)):
    return DataEnvelope[UserResource](data=user_resource(user))


@router.post("/logout", response_model=MessageResponse, responses=UNAUTHENTICATED)
async def logout(
    token: PersonalAccessToken = Depends(get_current_token),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.revoke_token(db, token)
    return MessageResponse(message="Successfully logged out")


@router.post("/logout-all", response_model=MessageResponse, responses=UNAUTHENTICATED)
async def logout_all(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.revoke_all_tokens(db, user)
    return MessageResponse(message="Successfully logged out from all devices")
