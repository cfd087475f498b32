"""
Inkpost API: User Lookups
===========================

Read-only user queries shared by the users route, the auth service and the
welcome-email trigger.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.mixins import is_valid_id
from app.models.user import User


class UserService:

    async def find_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        if not is_valid_id(user_id):
            return None
        return await db.get(User, user_id)

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        """
        Raises:
            NotFoundError: "User not found." (→ 404)
        """
        user = await self.find_by_id(db, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id, message="User not found.")
        return user


user_service = UserService()
