"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Mock data for testing
- Keep ownership rules out of SQL

Every storage failure surfaces as RetrievalFailureError so callers see one
error type regardless of the driver.
"""

import functools
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update, delete, and_, or_, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tasktime.domain.errors import ConflictError, RetrievalFailureError
from tasktime.domain.models import (
    User, Category, Task, TimeEntry, TaskDetail, TaskStatus, Priority,
)
from tasktime.infra.db import UserModel, CategoryModel, TaskModel, TimeEntryModel, get_engine

logger = logging.getLogger(__name__)


def storage_errors(func_):
    """Re-raise SQLAlchemy failures as RetrievalFailureError"""
    @functools.wraps(func_)
    async def wrapper(*args, **kwargs):
        try:
            return await func_(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"{func_.__qualname__} failed: {e}")
            raise RetrievalFailureError(f"Storage failure in {func_.__qualname__}") from e
    return wrapper


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


class _BaseRepository:
    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()


class UserRepository(_BaseRepository):
    """
    Handles user records. Credentials are managed elsewhere.
    """

    @storage_errors
    async def create(self, user: User) -> User:
        session = await self._get_session()
        async with session:
            model = UserModel(email=user.email, name=user.name, created_at=user.created_at)
            session.add(model)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(f"User {user.email} already exists") from e
            await session.refresh(model)
            return User.model_validate(model)

    @storage_errors
    async def get_by_id(self, user_id: int) -> Optional[User]:
        session = await self._get_session()
        async with session:
            result = await session.execute(select(UserModel).where(UserModel.id == user_id))
            model = result.scalar_one_or_none()
            return User.model_validate(model) if model else None

    @storage_errors
    async def get_by_email(self, email: str) -> Optional[User]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(UserModel).where(func.lower(UserModel.email) == email.lower())
            )
            model = result.scalar_one_or_none()
            return User.model_validate(model) if model else None


class CategoryRepository(_BaseRepository):
    """
    Handles all Category-related database operations.
    """

    @storage_errors
    async def create(self, category: Category) -> Category:
        """Create a new category. Raises ConflictError on a duplicate name."""
        session = await self._get_session()
        async with session:
            model = CategoryModel(
                name=category.name,
                color=category.color,
                user_id=category.user_id,
                created_at=category.created_at
            )
            session.add(model)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError("Category with this name already exists") from e
            await session.refresh(model)
            return Category.model_validate(model)

    @storage_errors
    async def get_by_id(self, category_id: int) -> Optional[Category]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(CategoryModel).where(CategoryModel.id == category_id)
            )
            model = result.scalar_one_or_none()
            return Category.model_validate(model) if model else None

    @storage_errors
    async def get_by_name(self, user_id: int, name: str) -> Optional[Category]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(CategoryModel).where(
                    and_(CategoryModel.user_id == user_id, CategoryModel.name == name)
                )
            )
            model = result.scalar_one_or_none()
            return Category.model_validate(model) if model else None

    @storage_errors
    async def get_all_for_user(self, user_id: int) -> List[Category]:
        """All categories of a user, ordered by name, with their task counts"""
        session = await self._get_session()
        async with session:
            stmt = (
                select(CategoryModel, func.count(TaskModel.id))
                .outerjoin(TaskModel, TaskModel.category_id == CategoryModel.id)
                .where(CategoryModel.user_id == user_id)
                .group_by(CategoryModel.id)
                .order_by(CategoryModel.name)
            )
            result = await session.execute(stmt)
            return [
                Category.model_validate(model).model_copy(update={"task_count": count})
                for model, count in result.all()
            ]

    @storage_errors
    async def get_tracked_seconds(self, user_id: int, since: datetime) -> List[Tuple[Category, int]]:
        """
        Closed seconds tracked per category since a point in time.

        Categories without tracked time are included with 0.
        """
        session = await self._get_session()
        async with session:
            stmt = (
                select(
                    CategoryModel,
                    func.coalesce(func.sum(TimeEntryModel.duration_seconds), 0)
                )
                .outerjoin(TaskModel, TaskModel.category_id == CategoryModel.id)
                .outerjoin(
                    TimeEntryModel,
                    and_(
                        TimeEntryModel.task_id == TaskModel.id,
                        TimeEntryModel.end_time.is_not(None),
                        TimeEntryModel.start_time >= since,
                    )
                )
                .where(CategoryModel.user_id == user_id)
                .group_by(CategoryModel.id)
                .order_by(CategoryModel.name)
            )
            result = await session.execute(stmt)
            return [(Category.model_validate(model), int(seconds)) for model, seconds in result.all()]

    @storage_errors
    async def update(self, category: Category) -> Category:
        session = await self._get_session()
        async with session:
            try:
                await session.execute(
                    update(CategoryModel)
                    .where(CategoryModel.id == category.id)
                    .values(name=category.name, color=category.color)
                )
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError("Category with this name already exists") from e
        return await self.get_by_id(category.id)

    @storage_errors
    async def delete(self, category_id: int) -> None:
        """Delete a category. Its tasks become uncategorized."""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TaskModel)
                .where(TaskModel.category_id == category_id)
                .values(category_id=None)
            )
            await session.execute(delete(CategoryModel).where(CategoryModel.id == category_id))
            await session.commit()


class TaskRepository(_BaseRepository):
    """
    Handles all Task-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    Also serves as the AnalyticsSource for the analytics service.
    """

    _GROUPABLE = {"status": TaskModel.status, "priority": TaskModel.priority}

    @staticmethod
    def _total_seconds_column():
        """Correlated sum of a task's closed entry durations"""
        return (
            select(func.coalesce(func.sum(TimeEntryModel.duration_seconds), 0))
            .where(
                and_(
                    TimeEntryModel.task_id == TaskModel.id,
                    TimeEntryModel.end_time.is_not(None),
                )
            )
            .correlate(TaskModel)
            .scalar_subquery()
        )

    @staticmethod
    def _to_task(model: TaskModel, total_seconds: int = 0) -> Task:
        return Task.model_validate(model).model_copy(update={"total_seconds": int(total_seconds)})

    @storage_errors
    async def create(self, task: Task) -> Task:
        """Create a new task"""
        session = await self._get_session()
        async with session:
            task_model = TaskModel(
                title=task.title,
                description=task.description,
                status=_enum_value(task.status),
                priority=_enum_value(task.priority),
                category_id=task.category_id,
                user_id=task.user_id,
                created_at=task.created_at,
                updated_at=task.updated_at
            )
            session.add(task_model)
            await session.commit()
            await session.refresh(task_model)
            return Task.model_validate(task_model)

    @storage_errors
    async def get_by_id(self, task_id: int) -> Optional[Task]:
        """Get a specific task by ID"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel, self._total_seconds_column()).where(TaskModel.id == task_id)
            )
            row = result.first()
            return self._to_task(row[0], row[1]) if row else None

    @storage_errors
    async def find_for_user(self, user_id: int,
                            status: Optional[TaskStatus] = None,
                            priority: Optional[Priority] = None,
                            category_id: Optional[int] = None,
                            search: Optional[str] = None) -> List[Task]:
        """Get a user's tasks, newest first, optionally filtered"""
        session = await self._get_session()
        async with session:
            stmt = select(TaskModel, self._total_seconds_column()).where(TaskModel.user_id == user_id)
            if status:
                stmt = stmt.where(TaskModel.status == _enum_value(status))
            if priority:
                stmt = stmt.where(TaskModel.priority == _enum_value(priority))
            if category_id is not None:
                stmt = stmt.where(TaskModel.category_id == category_id)
            if search:
                pattern = f"%{search.lower()}%"
                stmt = stmt.where(
                    or_(
                        func.lower(TaskModel.title).like(pattern),
                        func.lower(TaskModel.description).like(pattern),
                    )
                )

            result = await session.execute(
                stmt.order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
            )
            return [self._to_task(model, total) for model, total in result.all()]

    @storage_errors
    async def update(self, task: Task) -> Task:
        """Update an existing task. The owner is never changed."""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TaskModel)
                .where(TaskModel.id == task.id)
                .values(
                    title=task.title,
                    description=task.description,
                    status=_enum_value(task.status),
                    priority=_enum_value(task.priority),
                    category_id=task.category_id,
                    updated_at=datetime.now()
                )
            )
            await session.commit()
        return await self.get_by_id(task.id)

    @storage_errors
    async def delete(self, task_id: int) -> None:
        """Delete a task and its time entries"""
        session = await self._get_session()
        async with session:
            await session.execute(delete(TimeEntryModel).where(TimeEntryModel.task_id == task_id))
            await session.execute(delete(TaskModel).where(TaskModel.id == task_id))
            await session.commit()

    @storage_errors
    async def count_for_user(self, user_id: int,
                             status: Optional[TaskStatus] = None,
                             created_since: Optional[datetime] = None) -> int:
        session = await self._get_session()
        async with session:
            stmt = select(func.count(TaskModel.id)).where(TaskModel.user_id == user_id)
            if status:
                stmt = stmt.where(TaskModel.status == _enum_value(status))
            if created_since:
                stmt = stmt.where(TaskModel.created_at >= created_since)
            result = await session.execute(stmt)
            return int(result.scalar_one())

    @storage_errors
    async def count_by(self, user_id: int, field: str) -> Dict[str, int]:
        """
        Count all of a user's tasks grouped by "status" or "priority".

        Only values that occur are present in the result.
        """
        column = self._GROUPABLE.get(field)
        if column is None:
            raise ValueError(f"Cannot group tasks by {field!r}")
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(column, func.count(TaskModel.id))
                .where(TaskModel.user_id == user_id)
                .group_by(column)
            )
            return {value: int(count) for value, count in result.all()}

    @storage_errors
    async def get_completed_since(self, user_id: int, since: datetime) -> List[Task]:
        """Tasks marked done whose last update is at or after `since`"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TaskModel).where(
                    and_(
                        TaskModel.user_id == user_id,
                        TaskModel.status == TaskStatus.DONE.value,
                        TaskModel.updated_at >= since,
                    )
                )
            )
            return [Task.model_validate(m) for m in result.scalars().all()]

    @storage_errors
    async def find_for_analytics(self, user_id: int, start: datetime, end: datetime, *,
                                 category_id: Optional[int] = None,
                                 priority: Optional[Priority] = None,
                                 status: Optional[TaskStatus] = None) -> List[TaskDetail]:
        """
        Fetch tasks created within [start, end] with category and closed entries.

        Args:
            user_id: Owner of the tasks
            start: Inclusive lower bound on created_at
            end: Inclusive upper bound on created_at
            category_id, priority, status: Optional filters, all must match

        Returns:
            Tasks ordered by created_at descending
        """
        session = await self._get_session()
        async with session:
            stmt = (
                select(TaskModel)
                .where(
                    and_(
                        TaskModel.user_id == user_id,
                        TaskModel.created_at >= start,
                        TaskModel.created_at <= end,
                    )
                )
                .options(
                    selectinload(TaskModel.category),
                    selectinload(TaskModel.time_entries.and_(TimeEntryModel.end_time.is_not(None))),
                )
            )
            if category_id is not None:
                stmt = stmt.where(TaskModel.category_id == category_id)
            if priority:
                stmt = stmt.where(TaskModel.priority == _enum_value(priority))
            if status:
                stmt = stmt.where(TaskModel.status == _enum_value(status))

            result = await session.execute(
                stmt.order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
            )
            task_models = result.scalars().all()
            logger.debug(f"Fetched {len(task_models)} tasks for analytics (user {user_id})")
            return [TaskDetail.model_validate(tm) for tm in task_models]


class TimeEntryRepository(_BaseRepository):
    """
    Handles all TimeEntry-related database operations.
    """

    @storage_errors
    async def create(self, entry: TimeEntry) -> TimeEntry:
        """Create a new time entry"""
        session = await self._get_session()
        async with session:
            entry_model = TimeEntryModel(
                task_id=entry.task_id,
                user_id=entry.user_id,
                start_time=entry.start_time,
                end_time=entry.end_time,
                duration_seconds=entry.duration_seconds
            )
            session.add(entry_model)
            await session.commit()
            await session.refresh(entry_model)
            return TimeEntry.model_validate(entry_model)

    @storage_errors
    async def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )
            entry_model = result.scalar_one_or_none()
            return TimeEntry.model_validate(entry_model) if entry_model else None

    @storage_errors
    async def close(self, entry_id: int, end_time: datetime, duration_seconds: int) -> Optional[TimeEntry]:
        """Set end time and duration on an open entry"""
        session = await self._get_session()
        async with session:
            await session.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.id == entry_id)
                .values(end_time=end_time, duration_seconds=duration_seconds)
            )
            await session.commit()
        return await self.get_by_id(entry_id)

    @storage_errors
    async def get_active_for_user(self, user_id: int) -> Optional[TimeEntry]:
        """Get the user's open (not ended) time entry"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(
                    and_(
                        TimeEntryModel.user_id == user_id,
                        TimeEntryModel.end_time.is_(None),
                    )
                )
                .order_by(TimeEntryModel.start_time.desc())
            )
            entry_model = result.scalars().first()
            return TimeEntry.model_validate(entry_model) if entry_model else None

    @storage_errors
    async def get_by_task(self, task_id: int) -> List[TimeEntry]:
        """Get all time entries for a task, newest first"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(TimeEntryModel.task_id == task_id)
                .order_by(TimeEntryModel.start_time.desc())
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    @storage_errors
    async def sum_closed_durations(self, user_id: int, since: datetime,
                                   until: Optional[datetime] = None) -> Tuple[int, int]:
        """
        Total seconds and number of closed entries started within [since, until].

        Returns:
            (total_seconds, entry_count)
        """
        session = await self._get_session()
        async with session:
            stmt = select(
                func.coalesce(func.sum(TimeEntryModel.duration_seconds), 0),
                func.count(TimeEntryModel.id)
            ).where(
                and_(
                    TimeEntryModel.user_id == user_id,
                    TimeEntryModel.end_time.is_not(None),
                    TimeEntryModel.start_time >= since,
                )
            )
            if until:
                stmt = stmt.where(TimeEntryModel.start_time <= until)
            total, count = (await session.execute(stmt)).one()
            return int(total), int(count)

    @storage_errors
    async def get_closed_since(self, user_id: int, since: datetime) -> List[TimeEntry]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(
                    and_(
                        TimeEntryModel.user_id == user_id,
                        TimeEntryModel.end_time.is_not(None),
                        TimeEntryModel.start_time >= since,
                    )
                )
                .order_by(TimeEntryModel.start_time)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]
