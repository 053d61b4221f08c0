"""Domain layer - Pure business entities and logic"""

from .models import User, Category, Task, TimeEntry, TaskDetail, TaskStatus, Priority
from .analytics import AnalyticsFilters, AnalyticsSnapshot, TimeRange

__all__ = [
    "User", "Category", "Task", "TimeEntry", "TaskDetail", "TaskStatus", "Priority",
    "AnalyticsFilters", "AnalyticsSnapshot", "TimeRange",
]
