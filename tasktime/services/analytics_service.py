"""
Analytics Service - aggregates a user's tasks and closed time entries.

One retrieval, then three independent reductions over the fetched tasks:
per-task time, per-day hours and per-category time. Durations are summed as
integer milliseconds and rounded with Decimal, so results do not depend on
input order.
"""

import datetime
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional

from tasktime.domain.analytics import (
    AnalyticsFilters, AnalyticsSnapshot, AnalyticsSummary, CategoryShare,
    DailyHours, DateRangeInfo, TaskRow, TaskTime,
)
from tasktime.domain.models import TaskDetail, TaskStatus, TimeEntry
from tasktime.domain.ports import AnalyticsSource
from tasktime.infra.config import AnalyticsPreferences
from tasktime.infra.repository import TaskRepository
from tasktime.services.range_resolver import resolve_range

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000
_ONE_MILLISECOND = datetime.timedelta(milliseconds=1)
_TWO_PLACES = Decimal("0.01")
_WHOLE = Decimal("1")


def round_hours(value: Decimal) -> float:
    """Round to two decimals, half-up"""
    return float(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def round_minutes(value: Decimal) -> int:
    return int(value.quantize(_WHOLE, rounding=ROUND_HALF_UP))


def entry_milliseconds(entry: TimeEntry) -> int:
    """Elapsed milliseconds of a closed entry, 0 for an open one"""
    if entry.end_time is None:
        return 0
    return (entry.end_time - entry.start_time) // _ONE_MILLISECOND


def task_milliseconds(task: TaskDetail) -> int:
    return sum(entry_milliseconds(e) for e in task.time_entries)


def _category_label(task: TaskDetail, prefs: AnalyticsPreferences) -> str:
    return task.category.name if task.category else prefs.uncategorized_label


def _category_color(task: TaskDetail, prefs: AnalyticsPreferences) -> str:
    return task.category.color if task.category else prefs.uncategorized_color


def compute_time_per_task(tasks: List[TaskDetail], prefs: AnalyticsPreferences) -> List[TaskTime]:
    """Per-task elapsed time, sorted by minutes descending"""
    result = []
    for task in tasks:
        ms = Decimal(task_milliseconds(task))
        result.append(TaskTime(
            id=task.id,
            title=task.title,
            minutes=round_minutes(ms / MS_PER_MINUTE),
            hours=round_hours(ms / MS_PER_HOUR),
            category=_category_label(task, prefs),
            category_color=_category_color(task, prefs),
            priority=task.priority,
            status=task.status,
        ))
    return sorted(result, key=lambda t: t.minutes, reverse=True)


def compute_daily_hours(tasks: List[TaskDetail]) -> List[DailyHours]:
    """
    Hours per calendar day of each closed entry's start, across all tasks.

    Sorted ascending by date.
    """
    per_day: Dict[str, int] = {}
    for task in tasks:
        for entry in task.time_entries:
            if entry.end_time is None:
                continue
            day = entry.start_time.date().isoformat()
            per_day[day] = per_day.get(day, 0) + entry_milliseconds(entry)

    return [
        DailyHours(date=day, hours=round_hours(Decimal(ms) / MS_PER_HOUR))
        for day, ms in sorted(per_day.items())
    ]


def compute_category_distribution(tasks: List[TaskDetail],
                                  prefs: AnalyticsPreferences) -> List[CategoryShare]:
    """Minutes per category name, sorted by minutes descending"""
    buckets: Dict[str, Dict] = {}
    for task in tasks:
        name = _category_label(task, prefs)
        bucket = buckets.setdefault(name, {"ms": 0, "color": _category_color(task, prefs)})
        bucket["ms"] += task_milliseconds(task)

    shares = [
        CategoryShare(
            category=name,
            minutes=round_minutes(Decimal(b["ms"]) / MS_PER_MINUTE),
            hours=round_hours(Decimal(b["ms"]) / MS_PER_HOUR),
            color=b["color"],
        )
        for name, b in buckets.items()
    ]
    return sorted(shares, key=lambda s: s.minutes, reverse=True)


def compute_summary(tasks: List[TaskDetail], task_times: List[TaskTime],
                    date_range: DateRangeInfo) -> AnalyticsSummary:
    """
    Counts and totals.

    Hours derive from the summed rounded per-task minutes, not from the
    rounded per-task hours.
    """
    total_tasks = len(tasks)
    total_minutes = Decimal(sum(t.minutes for t in task_times))
    avg = round_hours(total_minutes / total_tasks / 60) if total_tasks else 0.0

    return AnalyticsSummary(
        total_tasks=total_tasks,
        completed_tasks=sum(1 for t in tasks if t.status == TaskStatus.DONE),
        total_hours=round_hours(total_minutes / 60),
        avg_time_per_task=avg,
        date_range=date_range,
    )


def build_task_rows(tasks: List[TaskDetail], task_times: List[TaskTime],
                    prefs: AnalyticsPreferences) -> List[TaskRow]:
    """Flat task records in retrieval order"""
    hours_by_id = {t.id: t.hours for t in task_times}
    return [
        TaskRow(
            id=task.id,
            title=task.title,
            description=task.description or "",
            status=task.status,
            priority=task.priority,
            category=_category_label(task, prefs),
            category_color=_category_color(task, prefs),
            created_at=task.created_at,
            updated_at=task.updated_at,
            total_hours=hours_by_id.get(task.id, 0.0),
        )
        for task in tasks
    ]


def build_snapshot(tasks: List[TaskDetail], date_range: DateRangeInfo,
                   prefs: Optional[AnalyticsPreferences] = None) -> AnalyticsSnapshot:
    """Run all reductions over a fetched task list"""
    prefs = prefs or AnalyticsPreferences()
    task_times = compute_time_per_task(tasks, prefs)
    return AnalyticsSnapshot(
        summary=compute_summary(tasks, task_times, date_range),
        time_per_task=task_times,
        daily_hours=compute_daily_hours(tasks),
        category_distribution=compute_category_distribution(tasks, prefs),
        tasks=build_task_rows(tasks, task_times, prefs),
    )


class AnalyticsService:
    """
    Computes analytics snapshots for one user.

    The data source is injected; by default the SQLAlchemy TaskRepository is used.
    """

    def __init__(self, source: Optional[AnalyticsSource] = None,
                 preferences: Optional[AnalyticsPreferences] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now):
        self.source = source if source is not None else TaskRepository()
        self.preferences = preferences or AnalyticsPreferences()
        self.clock = clock

    def resolve(self, filters: AnalyticsFilters) -> DateRangeInfo:
        return resolve_range(
            filters.time_range or self.preferences.default_time_range,
            filters.start_date,
            filters.end_date,
            now=self.clock(),
        )

    async def compute_analytics(self, user_id: int,
                                filters: Optional[AnalyticsFilters] = None) -> AnalyticsSnapshot:
        """
        Compute the analytics snapshot for a user.

        Args:
            user_id: Authenticated user
            filters: Range and optional category/priority/status filters

        Returns:
            AnalyticsSnapshot; empty lists and zero counts when nothing matches

        Raises:
            InvalidDateRangeError: if a custom range is malformed
            RetrievalFailureError: if the data source fails
        """
        filters = filters or AnalyticsFilters()
        date_range = self.resolve(filters)

        tasks = await self.source.find_for_analytics(
            user_id,
            date_range.start,
            date_range.end,
            category_id=filters.category_id,
            priority=filters.priority,
            status=filters.status,
        )

        snapshot = build_snapshot(tasks, date_range, self.preferences)
        logger.info(
            f"Analytics for user {user_id}: {snapshot.summary.total_tasks} tasks, "
            f"{snapshot.summary.total_hours}h ({date_range.start.date()} - {date_range.end.date()})"
        )
        return snapshot
