"""
Tests for task CRUD and ownership rules.
"""

import datetime
import pytest
from pydantic import ValidationError

from tasktime.domain.errors import NotFoundError
from tasktime.domain.models import (
    Category, Priority, TaskCreate, TaskStatus, TaskUpdate, TimeEntry,
)
from tasktime.infra.repository import CategoryRepository, TaskRepository, TimeEntryRepository
from tasktime.services.task_service import TaskService


@pytest.fixture
def service(db_session):
    return TaskService(
        task_repo=TaskRepository(session=db_session),
        category_repo=CategoryRepository(session=db_session),
    )


@pytest.mark.asyncio
async def test_create_uses_defaults(service, user):
    task = await service.create(user.id, TaskCreate(title="Plan sprint"))

    assert task.id is not None
    assert task.status == TaskStatus.PENDING
    assert task.priority == Priority.MEDIUM
    assert task.category_id is None
    assert task.user_id == user.id


@pytest.mark.asyncio
async def test_create_rejects_someone_elses_category(service, db_session, user, other_user):
    theirs = await CategoryRepository(session=db_session).create(
        Category(name="Private", user_id=other_user.id)
    )

    with pytest.raises(NotFoundError):
        await service.create(user.id, TaskCreate(title="Sneaky", category_id=theirs.id))


@pytest.mark.asyncio
async def test_find_all_filters_and_searches(service, db_session, user, other_user):
    work = await CategoryRepository(session=db_session).create(Category(name="Work", user_id=user.id))
    await service.create(user.id, TaskCreate(title="Fix login bug", priority=Priority.URGENT,
                                             category_id=work.id))
    await service.create(user.id, TaskCreate(title="Groceries", description="milk, BUGSPRAY"))
    await service.create(user.id, TaskCreate(title="Read", priority=Priority.LOW))
    await service.create(other_user.id, TaskCreate(title="Their bug"))

    assert len(await service.find_all(user.id)) == 3
    assert [t.title for t in await service.find_all(user.id, priority=Priority.URGENT)] == ["Fix login bug"]
    assert [t.title for t in await service.find_all(user.id, category_id=work.id)] == ["Fix login bug"]
    found = {t.title for t in await service.find_all(user.id, search="bug")}
    assert found == {"Fix login bug", "Groceries"}


@pytest.mark.asyncio
async def test_total_seconds_counts_closed_entries_only(service, db_session, user):
    task = await service.create(user.id, TaskCreate(title="Tracked"))
    entries = TimeEntryRepository(session=db_session)
    start = datetime.datetime(2026, 3, 15, 9, 0)
    await entries.create(TimeEntry(task_id=task.id, user_id=user.id, start_time=start,
                                   end_time=start + datetime.timedelta(minutes=20),
                                   duration_seconds=1200))
    await entries.create(TimeEntry(task_id=task.id, user_id=user.id, start_time=start,
                                   duration_seconds=300))

    found = await service.find_one(task.id, user.id)
    assert found.total_seconds == 1200
    assert (await service.find_all(user.id))[0].total_seconds == 1200


@pytest.mark.asyncio
async def test_find_one_hides_foreign_tasks(service, user, other_user):
    theirs = await service.create(other_user.id, TaskCreate(title="Theirs"))

    with pytest.raises(NotFoundError):
        await service.find_one(theirs.id, user.id)


@pytest.mark.asyncio
async def test_update_applies_only_given_fields(service, user):
    task = await service.create(user.id, TaskCreate(title="Draft", description="keep me",
                                                    priority=Priority.HIGH))

    updated = await service.update(task.id, user.id, TaskUpdate(status=TaskStatus.ACTIVE))

    assert updated.status == TaskStatus.ACTIVE
    assert updated.title == "Draft"
    assert updated.description == "keep me"
    assert updated.priority == Priority.HIGH
    assert updated.user_id == user.id
    assert updated.updated_at >= task.updated_at


@pytest.mark.asyncio
async def test_update_can_clear_category(service, db_session, user):
    work = await CategoryRepository(session=db_session).create(Category(name="Work", user_id=user.id))
    task = await service.create(user.id, TaskCreate(title="Move me", category_id=work.id))

    updated = await service.update(task.id, user.id, TaskUpdate(category_id=None))
    assert updated.category_id is None


@pytest.mark.parametrize("field", ["title", "status", "priority"])
def test_update_rejects_null_for_required_fields(field):
    with pytest.raises(ValidationError):
        TaskUpdate(**{field: None})


@pytest.mark.asyncio
async def test_update_rejects_nulls_before_touching_storage(service, user):
    task = await service.create(user.id, TaskCreate(title="Stable", priority=Priority.LOW))

    with pytest.raises(ValidationError):
        await service.update(task.id, user.id, TaskUpdate.model_validate({"title": None, "priority": None}))

    unchanged = await service.find_one(task.id, user.id)
    assert (unchanged.title, unchanged.priority) == ("Stable", Priority.LOW)

    cleared = await service.update(task.id, user.id, TaskUpdate(description=None))
    assert cleared.description is None
    assert cleared.title == "Stable"


@pytest.mark.asyncio
async def test_toggle_status_flips_between_done_and_pending(service, user):
    task = await service.create(user.id, TaskCreate(title="Toggle"))

    done = await service.toggle_status(task.id, user.id)
    assert done.status == TaskStatus.DONE
    back = await service.toggle_status(task.id, user.id)
    assert back.status == TaskStatus.PENDING


@pytest.mark.asyncio
async def test_remove_deletes_task_and_entries(service, db_session, user, other_user):
    task = await service.create(user.id, TaskCreate(title="Gone soon"))
    entries = TimeEntryRepository(session=db_session)
    start = datetime.datetime(2026, 3, 15, 9, 0)
    await entries.create(TimeEntry(task_id=task.id, user_id=user.id, start_time=start,
                                   end_time=start + datetime.timedelta(minutes=5),
                                   duration_seconds=300))

    with pytest.raises(NotFoundError):
        await service.remove(task.id, other_user.id)

    await service.remove(task.id, user.id)
    with pytest.raises(NotFoundError):
        await service.find_one(task.id, user.id)
    assert await entries.get_by_task(task.id) == []
