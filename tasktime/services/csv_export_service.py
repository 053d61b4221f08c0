"""
CSV Export Service.

Flattens the analytics task list into the CSV consumed by the download flow.

The file format is an external contract:
- Unquoted header row
- Every data field wrapped in double quotes, comma separated
- Rows joined with "\\n", no trailing newline

Embedded double quotes are passed through unescaped unless
AnalyticsPreferences.csv_escape_quotes is enabled.
"""

import logging
from datetime import datetime
from typing import List, Optional

from tasktime.domain.analytics import AnalyticsFilters, TaskRow
from tasktime.infra.config import AnalyticsPreferences
from tasktime.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Title", "Description", "Category", "Status", "Priority",
    "Hours Tracked", "Created At", "Updated At",
]


def format_hours(hours: float) -> str:
    """Shortest decimal form: 1.5 stays 1.5, 2.0 becomes 2"""
    text = f"{hours:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def format_timestamp(value: datetime, fmt: Optional[str] = None) -> str:
    """
    Render a Created At / Updated At cell.

    Without a format this is the legacy en-US form with unpadded month, day
    and hour: 3/14/2026, 4:45:30 PM
    """
    if fmt:
        return value.strftime(fmt)
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{value.month}/{value.day}/{value.year}, {hour}:{value:%M:%S} {suffix}"


class CsvExportService:
    """
    Exports a user's analytics task list as CSV text.

    Always computes a fresh snapshot, so the rows match what
    AnalyticsService.compute_analytics returns for the same filters.
    """

    def __init__(self, analytics: Optional[AnalyticsService] = None,
                 preferences: Optional[AnalyticsPreferences] = None):
        self.analytics = analytics or AnalyticsService(preferences=preferences)
        self.preferences = preferences or self.analytics.preferences

    def _quote(self, cell: str) -> str:
        if self.preferences.csv_escape_quotes:
            cell = cell.replace('"', '""')
        return f'"{cell}"'

    def _row(self, task: TaskRow) -> List[str]:
        fmt = self.preferences.csv_datetime_format
        return [
            task.title,
            task.description or "",
            task.category,
            task.status.value,
            task.priority.value,
            format_hours(task.total_hours),
            format_timestamp(task.created_at, fmt),
            format_timestamp(task.updated_at, fmt),
        ]

    def render(self, tasks: List[TaskRow]) -> str:
        """Render task rows to CSV text"""
        lines = [",".join(CSV_HEADERS)]
        lines.extend(",".join(self._quote(cell) for cell in self._row(task)) for task in tasks)
        return "\n".join(lines)

    async def export_csv(self, user_id: int, filters: Optional[AnalyticsFilters] = None) -> str:
        """
        Export the filtered task list for a user.

        Raises:
            InvalidDateRangeError: if a custom range is malformed
            RetrievalFailureError: if the data source fails
        """
        snapshot = await self.analytics.compute_analytics(user_id, filters)
        logger.info(f"Exporting {len(snapshot.tasks)} tasks as CSV for user {user_id}")
        return self.render(snapshot.tasks)
