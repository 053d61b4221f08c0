"""
Task Service - task CRUD scoped to the owning user.
"""

import logging
from typing import List, Optional

from tasktime.domain.errors import NotFoundError
from tasktime.domain.models import Task, TaskCreate, TaskUpdate, TaskStatus, Priority
from tasktime.infra.repository import TaskRepository, CategoryRepository

logger = logging.getLogger(__name__)


class TaskService:
    """
    Creates, lists, updates and deletes a user's tasks.

    Tasks owned by someone else are reported as not found.
    """

    def __init__(self, task_repo: Optional[TaskRepository] = None,
                 category_repo: Optional[CategoryRepository] = None):
        self.task_repo = task_repo or TaskRepository()
        self.category_repo = category_repo or CategoryRepository()

    async def _check_category(self, category_id: Optional[int], user_id: int) -> None:
        if category_id is None:
            return
        category = await self.category_repo.get_by_id(category_id)
        if category is None or category.user_id != user_id:
            raise NotFoundError("Category")

    async def create(self, user_id: int, data: TaskCreate) -> Task:
        await self._check_category(data.category_id, user_id)
        task = await self.task_repo.create(Task(
            title=data.title,
            description=data.description or None,
            priority=data.priority,
            category_id=data.category_id,
            user_id=user_id,
        ))
        logger.info(f"Task created: {task.id} '{task.title}' (user {user_id})")
        return task

    async def find_all(self, user_id: int,
                       status: Optional[TaskStatus] = None,
                       priority: Optional[Priority] = None,
                       category_id: Optional[int] = None,
                       search: Optional[str] = None) -> List[Task]:
        return await self.task_repo.find_for_user(
            user_id, status=status, priority=priority, category_id=category_id, search=search
        )

    async def find_one(self, task_id: int, user_id: int) -> Task:
        task = await self.task_repo.get_by_id(task_id)
        if task is None or task.user_id != user_id:
            raise NotFoundError("Task")
        return task

    async def update(self, task_id: int, user_id: int, data: TaskUpdate) -> Task:
        """Apply the fields that were set on `data`"""
        task = await self.find_one(task_id, user_id)
        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            await self._check_category(changes["category_id"], user_id)

        updated = await self.task_repo.update(task.model_copy(update=changes))
        logger.debug(f"Task {task_id} updated: {sorted(changes)}")
        return updated

    async def remove(self, task_id: int, user_id: int) -> None:
        await self.find_one(task_id, user_id)
        await self.task_repo.delete(task_id)
        logger.info(f"Task deleted: {task_id} (user {user_id})")

    async def toggle_status(self, task_id: int, user_id: int) -> Task:
        """Flip between done and pending"""
        task = await self.find_one(task_id, user_id)
        new_status = TaskStatus.PENDING if task.status == TaskStatus.DONE else TaskStatus.DONE
        return await self.task_repo.update(task.model_copy(update={"status": new_status}))
