"""
Timer Service - start/stop timers against tasks.

A user has at most one open time entry. Starting a second timer is rejected
rather than silently stopping the first one.
"""

import datetime
import logging
from typing import Callable, List, Optional

from tasktime.domain.errors import NotFoundError, TimerStateError
from tasktime.domain.models import Task, TimeEntry
from tasktime.infra.repository import TaskRepository, TimeEntryRepository

logger = logging.getLogger(__name__)


class TimerService:
    """
    The time tracking engine. Stateless: every call reads the open entry from storage.
    """

    def __init__(self, task_repo: Optional[TaskRepository] = None,
                 entry_repo: Optional[TimeEntryRepository] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now):
        self.task_repo = task_repo or TaskRepository()
        self.entry_repo = entry_repo or TimeEntryRepository()
        self.clock = clock

    async def _get_owned_task(self, task_id: int, user_id: int) -> Task:
        task = await self.task_repo.get_by_id(task_id)
        if task is None or task.user_id != user_id:
            raise NotFoundError("Task")
        return task

    async def start_timer(self, task_id: int, user_id: int) -> TimeEntry:
        """
        Start tracking time for a task.

        Raises:
            NotFoundError: if the task does not exist for this user
            TimerStateError: if the user already has an open entry
        """
        await self._get_owned_task(task_id, user_id)

        active = await self.entry_repo.get_active_for_user(user_id)
        if active is not None:
            raise TimerStateError("You already have an active timer")

        entry = await self.entry_repo.create(TimeEntry(
            task_id=task_id,
            user_id=user_id,
            start_time=self.clock(),
            duration_seconds=0
        ))
        logger.info(f"Timer started: entry {entry.id} on task {task_id} (user {user_id})")
        return entry

    async def stop_timer(self, entry_id: int, user_id: int) -> TimeEntry:
        """
        Stop an open time entry and record its duration in whole seconds.

        Raises:
            NotFoundError: if the entry does not exist for this user
            TimerStateError: if the entry is already stopped
        """
        entry = await self.entry_repo.get_by_id(entry_id)
        if entry is None or entry.user_id != user_id:
            raise NotFoundError("Time entry")
        if entry.end_time is not None:
            raise TimerStateError("Timer already stopped")

        end_time = self.clock()
        duration = int((end_time - entry.start_time).total_seconds())
        stopped = await self.entry_repo.close(entry_id, end_time, max(duration, 0))
        logger.info(f"Timer stopped: entry {entry_id} after {duration}s (user {user_id})")
        return stopped

    async def get_active_timer(self, user_id: int) -> Optional[TimeEntry]:
        """Get the user's open entry, if any"""
        return await self.entry_repo.get_active_for_user(user_id)

    async def get_task_entries(self, task_id: int, user_id: int) -> List[TimeEntry]:
        """All entries of an owned task, newest first"""
        await self._get_owned_task(task_id, user_id)
        return await self.entry_repo.get_by_task(task_id)
