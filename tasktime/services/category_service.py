"""
Category Service - per-user categories with unique names.
"""

import logging
from typing import List, Optional

from tasktime.domain.errors import ConflictError, NotFoundError
from tasktime.domain.models import Category, CategoryCreate, CategoryUpdate
from tasktime.infra.config import AnalyticsPreferences
from tasktime.infra.repository import CategoryRepository

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, category_repo: Optional[CategoryRepository] = None,
                 preferences: Optional[AnalyticsPreferences] = None):
        self.category_repo = category_repo or CategoryRepository()
        self.preferences = preferences or AnalyticsPreferences()

    async def create(self, user_id: int, data: CategoryCreate) -> Category:
        """
        Create a category.

        Raises:
            ConflictError: if the user already has a category with this name
        """
        if await self.category_repo.get_by_name(user_id, data.name):
            raise ConflictError("Category with this name already exists")

        category = await self.category_repo.create(Category(
            name=data.name,
            color=data.color or self.preferences.default_category_color,
            user_id=user_id,
        ))
        logger.info(f"Category created: {category.id} '{category.name}' (user {user_id})")
        return category

    async def find_all(self, user_id: int) -> List[Category]:
        return await self.category_repo.get_all_for_user(user_id)

    async def find_one(self, category_id: int, user_id: int) -> Category:
        category = await self.category_repo.get_by_id(category_id)
        if category is None or category.user_id != user_id:
            raise NotFoundError("Category")
        return category

    async def update(self, category_id: int, user_id: int, data: CategoryUpdate) -> Category:
        category = await self.find_one(category_id, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        new_name = changes.get("name")
        if new_name and new_name != category.name:
            if await self.category_repo.get_by_name(user_id, new_name):
                raise ConflictError("Category with this name already exists")

        return await self.category_repo.update(category.model_copy(update=changes))

    async def remove(self, category_id: int, user_id: int) -> None:
        await self.find_one(category_id, user_id)
        await self.category_repo.delete(category_id)
        logger.info(f"Category deleted: {category_id} (user {user_id})")
