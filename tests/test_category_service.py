"""
Tests for per-user categories.
"""

import pytest
from pydantic import ValidationError

from tasktime.domain.errors import ConflictError, NotFoundError
from tasktime.domain.models import CategoryCreate, CategoryUpdate, Task
from tasktime.infra.config import AnalyticsPreferences
from tasktime.infra.repository import CategoryRepository, TaskRepository
from tasktime.services.category_service import CategoryService


@pytest.fixture
def service(db_session):
    return CategoryService(category_repo=CategoryRepository(session=db_session))


@pytest.mark.asyncio
async def test_create_applies_default_color(db_session, user):
    prefs = AnalyticsPreferences(default_category_color="#123456")
    service = CategoryService(category_repo=CategoryRepository(session=db_session), preferences=prefs)

    category = await service.create(user.id, CategoryCreate(name="Work"))
    assert category.color == "#123456"


@pytest.mark.asyncio
async def test_duplicate_name_conflicts_per_user(service, user, other_user):
    await service.create(user.id, CategoryCreate(name="Work", color="#FF0000"))

    with pytest.raises(ConflictError):
        await service.create(user.id, CategoryCreate(name="Work"))

    # Same name for a different owner is fine
    theirs = await service.create(other_user.id, CategoryCreate(name="Work"))
    assert theirs.user_id == other_user.id


def test_color_must_be_hex():
    with pytest.raises(ValidationError):
        CategoryCreate(name="Bad", color="red")
    assert CategoryCreate(name="Short", color="#abc").color == "#abc"


@pytest.mark.asyncio
async def test_find_all_sorted_with_task_counts(service, db_session, user):
    study = await service.create(user.id, CategoryCreate(name="Study"))
    await service.create(user.id, CategoryCreate(name="Admin"))
    tasks = TaskRepository(session=db_session)
    await tasks.create(Task(title="Read", category_id=study.id, user_id=user.id))
    await tasks.create(Task(title="Notes", category_id=study.id, user_id=user.id))

    found = await service.find_all(user.id)
    assert [(c.name, c.task_count) for c in found] == [("Admin", 0), ("Study", 2)]


@pytest.mark.asyncio
async def test_rename_conflict(service, user):
    await service.create(user.id, CategoryCreate(name="Work"))
    home = await service.create(user.id, CategoryCreate(name="Home"))

    with pytest.raises(ConflictError):
        await service.update(home.id, user.id, CategoryUpdate(name="Work"))

    renamed = await service.update(home.id, user.id, CategoryUpdate(name="House", color="#00FF00"))
    assert (renamed.name, renamed.color) == ("House", "#00FF00")


@pytest.mark.asyncio
async def test_foreign_category_looks_missing(service, user, other_user):
    theirs = await service.create(other_user.id, CategoryCreate(name="Secret"))

    with pytest.raises(NotFoundError):
        await service.find_one(theirs.id, user.id)
    with pytest.raises(NotFoundError):
        await service.remove(theirs.id, user.id)


@pytest.mark.asyncio
async def test_remove_leaves_tasks_uncategorized(service, db_session, user):
    work = await service.create(user.id, CategoryCreate(name="Work"))
    tasks = TaskRepository(session=db_session)
    task = await tasks.create(Task(title="Orphan", category_id=work.id, user_id=user.id))

    await service.remove(work.id, user.id)

    assert (await tasks.get_by_id(task.id)).category_id is None
    assert await service.find_all(user.id) == []
