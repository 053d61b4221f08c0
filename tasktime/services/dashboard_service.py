"""
Dashboard Service - quick counters and trends for the dashboard widgets.

Only closed time entries are counted; an open timer adds nothing until stopped.
"""

import datetime
import logging
from decimal import Decimal
from typing import Callable, List, Optional

from tasktime.domain.analytics import (
    CategoryHours, DashboardOverview, DashboardStats, TimeTracked, TrendPoint,
)
from tasktime.domain.errors import InvalidFilterError
from tasktime.domain.models import Priority, TaskStatus
from tasktime.infra.repository import CategoryRepository, TaskRepository, TimeEntryRepository
from tasktime.services.analytics_service import round_hours
from tasktime.services.range_resolver import start_of_day

logger = logging.getLogger(__name__)

DASHBOARD_PERIODS = ("today", "weekly")
DISTRIBUTION_PERIODS = {"week": 7, "month": 30}
MAX_TREND_DAYS = 366


def _seconds_to_hours(seconds: int) -> float:
    return round_hours(Decimal(seconds) / 3600)


class DashboardService:
    def __init__(self, task_repo: Optional[TaskRepository] = None,
                 entry_repo: Optional[TimeEntryRepository] = None,
                 category_repo: Optional[CategoryRepository] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now):
        self.task_repo = task_repo or TaskRepository()
        self.entry_repo = entry_repo or TimeEntryRepository()
        self.category_repo = category_repo or CategoryRepository()
        self.clock = clock

    @staticmethod
    def _check_period(period: str, allowed) -> None:
        if period not in allowed:
            raise InvalidFilterError(f"Unknown period {period!r}, expected one of {sorted(allowed)}")

    async def get_dashboard_stats(self, user_id: int, period: str = "today") -> DashboardStats:
        """
        Task counts by status and hours tracked.

        Task counts cover tasks created since the start of today ("today") or
        the start of the day a week ago ("weekly"). Hours are always reported
        for both today and the last 7 days.
        """
        self._check_period(period, DASHBOARD_PERIODS)
        now = self.clock()
        today = start_of_day(now)
        week_start = start_of_day(now - datetime.timedelta(days=7))
        since = today if period == "today" else week_start

        total = await self.task_repo.count_for_user(user_id, created_since=since)
        completed = await self.task_repo.count_for_user(user_id, TaskStatus.DONE, since)
        in_progress = await self.task_repo.count_for_user(user_id, TaskStatus.ACTIVE, since)
        todo = await self.task_repo.count_for_user(user_id, TaskStatus.PENDING, since)
        completed_this_week = await self.task_repo.get_completed_since(user_id, week_start)
        today_seconds, _ = await self.entry_repo.sum_closed_durations(user_id, today)
        week_seconds, _ = await self.entry_repo.sum_closed_durations(user_id, week_start)

        return DashboardStats(
            total_tasks=total,
            completed_tasks=completed,
            in_progress=in_progress,
            todo=todo,
            hours_tracked_today=_seconds_to_hours(today_seconds),
            hours_tracked_week=_seconds_to_hours(week_seconds),
            completed_this_week=len(completed_this_week),
        )

    async def get_dashboard(self, user_id: int) -> DashboardOverview:
        """
        Overview widget data.

        Completions are tasks marked done whose last update is since the start
        of today, or since the start of the day a week ago. The status and
        priority breakdowns cover every task the user owns and list each
        known value, with 0 where no task has it.
        """
        today = start_of_day(self.clock())
        week_start = today - datetime.timedelta(days=7)

        done_today = await self.task_repo.get_completed_since(user_id, today)
        done_week = await self.task_repo.get_completed_since(user_id, week_start)
        today_seconds, _ = await self.entry_repo.sum_closed_durations(user_id, today)
        week_seconds, _ = await self.entry_repo.sum_closed_durations(user_id, week_start)
        by_status = await self.task_repo.count_by(user_id, "status")
        by_priority = await self.task_repo.count_by(user_id, "priority")

        return DashboardOverview(
            tasks_completed_today=len(done_today),
            tasks_completed_week=len(done_week),
            total_hours_today=_seconds_to_hours(today_seconds),
            total_hours_week=_seconds_to_hours(week_seconds),
            tasks_by_status={s.value: by_status.get(s.value, 0) for s in TaskStatus},
            tasks_by_priority={p.value: by_priority.get(p.value, 0) for p in Priority},
        )

    async def get_time_tracked(self, user_id: int, period: str = "today") -> TimeTracked:
        """Closed hours since midnight ("today") or over the last 7x24 hours ("weekly")"""
        self._check_period(period, DASHBOARD_PERIODS)
        now = self.clock()
        since = start_of_day(now) if period == "today" else now - datetime.timedelta(days=7)

        seconds, count = await self.entry_repo.sum_closed_durations(user_id, since)
        return TimeTracked(total_hours=_seconds_to_hours(seconds), entries=count, period=period)

    async def get_productivity_trend(self, user_id: int, days: int = 7) -> List[TrendPoint]:
        """
        One point per day for the last `days` days, ending today.

        tasks_completed counts tasks marked done whose last update falls on that day.
        """
        if days < 1 or days > MAX_TREND_DAYS:
            raise InvalidFilterError(f"days must be between 1 and {MAX_TREND_DAYS}")

        first_day = start_of_day(self.clock() - datetime.timedelta(days=days - 1))
        completed = await self.task_repo.get_completed_since(user_id, first_day)
        entries = await self.entry_repo.get_closed_since(user_id, first_day)

        done_per_day = {}
        for task in completed:
            key = task.updated_at.date()
            done_per_day[key] = done_per_day.get(key, 0) + 1

        seconds_per_day = {}
        for entry in entries:
            key = entry.start_time.date()
            seconds_per_day[key] = seconds_per_day.get(key, 0) + entry.duration_seconds

        trend = []
        for offset in range(days):
            day = (first_day + datetime.timedelta(days=offset)).date()
            trend.append(TrendPoint(
                date=day.isoformat(),
                tasks_completed=done_per_day.get(day, 0),
                hours_tracked=_seconds_to_hours(seconds_per_day.get(day, 0)),
            ))
        return trend

    async def get_time_distribution(self, user_id: int, period: str = "week") -> List[CategoryHours]:
        """Hours per category over the last 7 ("week") or 30 ("month") days"""
        self._check_period(period, DISTRIBUTION_PERIODS)
        since = start_of_day(self.clock() - datetime.timedelta(days=DISTRIBUTION_PERIODS[period]))

        rows = await self.category_repo.get_tracked_seconds(user_id, since)
        return [
            CategoryHours(name=category.name, hours=_seconds_to_hours(seconds), color=category.color)
            for category, seconds in rows
        ]
