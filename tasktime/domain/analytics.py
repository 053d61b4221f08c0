"""
Analytics value types.

Filters come in from the caller, snapshots go out. Both are plain pydantic
models so they validate once at the boundary and serialize cleanly.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Any, Dict

from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from tasktime.domain.errors import InvalidFilterError
from tasktime.domain.models import Priority, TaskStatus


class TimeRange(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "last-7-days"
    LAST_30_DAYS = "last-30-days"
    CUSTOM = "custom"


# Older clients send the short names
TIME_RANGE_ALIASES = {
    "week": TimeRange.LAST_7_DAYS,
    "month": TimeRange.LAST_30_DAYS,
}


class AnalyticsFilters(BaseModel):
    """
    Filter options for an analytics query.

    Unsupplied optional fields impose no constraint. start_date/end_date are
    only consulted when time_range is "custom".
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    time_range: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    category_id: Optional[int] = None
    priority: Optional[Priority] = None
    status: Optional[TaskStatus] = None

    @field_validator("start_date", "end_date", "time_range", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_query(cls, params: Dict[str, Any]) -> "AnalyticsFilters":
        """
        Build filters from a raw query mapping (camelCase or snake_case keys).

        Raises:
            InvalidFilterError: if a value has the wrong type or is not an allowed choice
        """
        try:
            return cls.model_validate(params)
        except ValidationError as e:
            raise InvalidFilterError(str(e)) from e


class DateRangeInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start: datetime
    end: datetime


class AnalyticsSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_tasks: int = 0
    completed_tasks: int = 0
    total_hours: float = 0.0
    avg_time_per_task: float = 0.0
    date_range: DateRangeInfo


class TaskTime(BaseModel):
    """Elapsed time for one task."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    minutes: int
    hours: float
    category: str
    category_color: str
    priority: Priority
    status: TaskStatus


class DailyHours(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: str  # YYYY-MM-DD
    hours: float


class CategoryShare(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: str
    minutes: int
    hours: float
    color: str


class TaskRow(BaseModel):
    """Flat task record used by the task table and the CSV export."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    description: str = ""
    status: TaskStatus
    priority: Priority
    category: str
    category_color: str
    created_at: datetime
    updated_at: datetime
    total_hours: float = 0.0


class AnalyticsSnapshot(BaseModel):
    """Complete result of one analytics computation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    summary: AnalyticsSummary
    time_per_task: List[TaskTime] = Field(default_factory=list)
    daily_hours: List[DailyHours] = Field(default_factory=list)
    category_distribution: List[CategoryShare] = Field(default_factory=list)
    tasks: List[TaskRow] = Field(default_factory=list)


class DashboardStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_tasks: int
    completed_tasks: int
    in_progress: int
    todo: int
    hours_tracked_today: float
    hours_tracked_week: float
    completed_this_week: int


class DashboardOverview(BaseModel):
    """Completion and hours for today and the last week, plus all-time breakdowns"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tasks_completed_today: int
    tasks_completed_week: int
    total_hours_today: float
    total_hours_week: float
    tasks_by_status: Dict[str, int]
    tasks_by_priority: Dict[str, int]


class TimeTracked(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_hours: float
    entries: int
    period: str


class TrendPoint(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: str
    tasks_completed: int
    hours_tracked: float


class CategoryHours(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    hours: float
    color: str
