"""
Inkpost API: Category Service
===============================

Categories are reference data: clients list them to pick a `category_id`,
operators create them from the CLI.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ValidationError
from app.models.category import Category

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 255


class CategoryService:

    async def list_categories(self, db: AsyncSession) -> List[Category]:
        result = await db.execute(select(Category).order_by(Category.id))
        return list(result.scalars().all())

    async def create_category(self, db: AsyncSession, name: str) -> Category:
        """
        Raises:
            ValidationError: blank or overlong name
        """
        name = name.strip()
        if not name:
            raise ValidationError.for_field("name", "The name field is required.")
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError.for_field(
                "name", f"The name field must not be greater than {NAME_MAX_LENGTH} characters."
            )

        category = Category(name=name)
        db.add(category)
        await db.flush()
        logger.info("Category %s created: %s", category.id, name)
        return category


category_service = CategoryService()
