"""Services layer - Business logic"""

from .analytics_service import AnalyticsService
from .csv_export_service import CsvExportService
from .dashboard_service import DashboardService
from .timer_service import TimerService
from .task_service import TaskService
from .category_service import CategoryService
from .range_resolver import resolve_range

__all__ = [
    "AnalyticsService", "CsvExportService", "DashboardService",
    "TimerService", "TaskService", "CategoryService", "resolve_range",
]
