"""
Tests for dashboard counters, trend and distribution.
"""

import datetime
import pytest
import pytest_asyncio

from tasktime.domain.errors import InvalidFilterError
from tasktime.domain.models import Category, Priority, Task, TaskStatus, TimeEntry
from tasktime.infra.repository import CategoryRepository, TaskRepository, TimeEntryRepository
from tasktime.services.dashboard_service import DashboardService

NOW = datetime.datetime(2026, 3, 15, 18, 0)


def at(day: int, hour: int, minute: int = 0) -> datetime.datetime:
    return datetime.datetime(2026, 3, day, hour, minute)


@pytest.fixture
def service(db_session):
    return DashboardService(
        task_repo=TaskRepository(session=db_session),
        entry_repo=TimeEntryRepository(session=db_session),
        category_repo=CategoryRepository(session=db_session),
        clock=lambda: NOW,
    )


@pytest_asyncio.fixture
async def seeded(db_session, user, other_user):
    """
    Today:       pending (Work, 1h closed), active (open timer), done
    13 March:    done (Work, 30m closed), pending
    1 March:     done (Home, 2h closed)
    """
    categories = CategoryRepository(session=db_session)
    tasks = TaskRepository(session=db_session)
    entries = TimeEntryRepository(session=db_session)

    work = await categories.create(Category(name="Work", color="#2563EB", user_id=user.id))
    home = await categories.create(Category(name="Home", color="#16A34A", user_id=user.id))

    async def add_task(title, status, when, category=None):
        return await tasks.create(Task(title=title, status=status, user_id=user.id,
                                       category_id=category.id if category else None,
                                       created_at=when, updated_at=when))

    async def add_entry(task, start, minutes=None):
        end = start + datetime.timedelta(minutes=minutes) if minutes is not None else None
        await entries.create(TimeEntry(task_id=task.id, user_id=user.id, start_time=start,
                                       end_time=end, duration_seconds=(minutes or 0) * 60))

    t1 = await add_task("Today pending", TaskStatus.PENDING, at(15, 8), work)
    t2 = await add_task("Today active", TaskStatus.ACTIVE, at(15, 8, 30))
    await add_task("Today done", TaskStatus.DONE, at(15, 9))
    t4 = await add_task("Earlier done", TaskStatus.DONE, at(13, 10), work)
    await add_task("Earlier pending", TaskStatus.PENDING, at(13, 11))
    t6 = await add_task("Old done", TaskStatus.DONE, at(1, 10), home)

    await add_entry(t1, at(15, 9), 60)
    await add_entry(t2, at(15, 12))
    await add_entry(t4, at(13, 10), 30)
    await add_entry(t6, at(1, 10), 120)

    # Noise from another user
    foreign = await tasks.create(Task(title="Not mine", status=TaskStatus.DONE, user_id=other_user.id,
                                      created_at=at(15, 8), updated_at=at(15, 8)))
    await entries.create(TimeEntry(task_id=foreign.id, user_id=other_user.id, start_time=at(15, 8),
                                   end_time=at(15, 10), duration_seconds=7200))
    return user


@pytest.mark.asyncio
async def test_stats_today(service, seeded):
    stats = await service.get_dashboard_stats(seeded.id, "today")

    assert (stats.total_tasks, stats.completed_tasks, stats.in_progress, stats.todo) == (3, 1, 1, 1)
    assert stats.hours_tracked_today == 1.0
    assert stats.hours_tracked_week == 1.5


@pytest.mark.asyncio
async def test_stats_weekly(service, seeded):
    stats = await service.get_dashboard_stats(seeded.id, "weekly")

    assert (stats.total_tasks, stats.completed_tasks, stats.in_progress, stats.todo) == (5, 2, 1, 2)
    assert stats.completed_this_week == 2


@pytest.mark.asyncio
async def test_stats_completed_this_week_ignores_period(service, seeded):
    stats = await service.get_dashboard_stats(seeded.id, "today")

    assert stats.completed_tasks == 1
    assert stats.completed_this_week == 2


@pytest.mark.asyncio
async def test_dashboard_overview(service, seeded, db_session):
    old = datetime.datetime(2026, 2, 1, 9)
    await TaskRepository(session=db_session).create(Task(
        title="Ancient urgent", priority=Priority.URGENT, user_id=seeded.id,
        created_at=old, updated_at=old,
    ))

    overview = await service.get_dashboard(seeded.id)

    assert overview.tasks_completed_today == 1
    assert overview.tasks_completed_week == 2
    assert overview.total_hours_today == 1.0
    assert overview.total_hours_week == 1.5
    assert overview.tasks_by_status == {"pending": 3, "active": 1, "done": 3}
    assert overview.tasks_by_priority == {"low": 0, "medium": 6, "high": 0, "urgent": 1}
    assert "tasksByPriority" in overview.model_dump(by_alias=True)


@pytest.mark.asyncio
async def test_dashboard_overview_for_new_user(service, user):
    overview = await service.get_dashboard(user.id)

    assert (overview.tasks_completed_today, overview.total_hours_week) == (0, 0)
    assert set(overview.tasks_by_status.values()) == {0}
    assert set(overview.tasks_by_priority.values()) == {0}


@pytest.mark.asyncio
async def test_time_tracked(service, seeded):
    today = await service.get_time_tracked(seeded.id, "today")
    weekly = await service.get_time_tracked(seeded.id, "weekly")

    assert (today.total_hours, today.entries) == (1.0, 1)
    assert (weekly.total_hours, weekly.entries) == (1.5, 2)


@pytest.mark.asyncio
async def test_productivity_trend_ends_today(service, seeded):
    trend = await service.get_productivity_trend(seeded.id, days=3)

    assert [(p.date, p.tasks_completed, p.hours_tracked) for p in trend] == [
        ("2026-03-13", 1, 0.5),
        ("2026-03-14", 0, 0.0),
        ("2026-03-15", 1, 1.0),
    ]


@pytest.mark.asyncio
async def test_time_distribution(service, seeded):
    week = await service.get_time_distribution(seeded.id, "week")
    month = await service.get_time_distribution(seeded.id, "month")

    assert [(c.name, c.hours) for c in week] == [("Home", 0.0), ("Work", 1.5)]
    assert [(c.name, c.hours, c.color) for c in month] == [
        ("Home", 2.0, "#16A34A"),
        ("Work", 1.5, "#2563EB"),
    ]


@pytest.mark.asyncio
async def test_empty_user_gets_zeros(service, user):
    stats = await service.get_dashboard_stats(user.id)

    assert stats.total_tasks == 0
    assert stats.hours_tracked_week == 0
    assert await service.get_time_distribution(user.id) == []
    trend = await service.get_productivity_trend(user.id)
    assert len(trend) == 7
    assert all(p.hours_tracked == 0 for p in trend)


@pytest.mark.asyncio
@pytest.mark.parametrize("call", [
    lambda s: s.get_dashboard_stats(1, "monthly"),
    lambda s: s.get_time_distribution(1, "year"),
    lambda s: s.get_productivity_trend(1, days=0),
])
async def test_invalid_arguments(service, call):
    with pytest.raises(InvalidFilterError):
        await call(service)
