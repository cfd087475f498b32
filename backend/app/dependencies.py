"""
Inkpost API: Request Dependencies
===================================

What:  FastAPI dependencies resolving the caller of a protected route.
How:   `HTTPBearer(auto_error=False)` extracts the token from the
       Authorization header; AuthService resolves it. Any failure becomes an
       AuthenticationError, which the global handler renders as 401
       `{"message": "Unauthenticated."}`.

FastAPI resolves dependencies before it validates the request body, so an
unauthenticated request with an invalid body gets 401, not 422.

Usage:
    @router.post("/posts")
    async def create_post(
        payload: PostCreate,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_session),
    ): ...
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import AuthenticationError
from app.models.access_token import PersonalAccessToken
from app.models.user import User
from app.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> PersonalAccessToken:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(context={"reason": "missing"})
    return await auth_service.resolve_token(db, credentials.credentials)


async def get_current_user(
    token: PersonalAccessToken = Depends(get_current_token),
) -> User:
    return token.user
