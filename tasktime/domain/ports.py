"""
Capabilities the services depend on.

Services receive these at construction so tests can pass in-memory fakes.
"""

from datetime import datetime
from typing import List, Optional, Protocol

from tasktime.domain.models import TaskDetail, Priority, TaskStatus


class AnalyticsSource(Protocol):
    """
    Fetches a user's tasks for analytics.

    Implementations must return tasks created within [start, end] that match every
    supplied filter, each with its category and only its closed time entries,
    ordered by creation time descending.
    """

    async def find_for_analytics(
        self,
        user_id: int,
        start: datetime,
        end: datetime,
        *,
        category_id: Optional[int] = None,
        priority: Optional[Priority] = None,
        status: Optional[TaskStatus] = None,
    ) -> List[TaskDetail]:
        ...
