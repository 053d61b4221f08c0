"""
Data Seeder for TaskTime.
Populates the database with a demo user, categories, tasks and closed time entries.
"""

import asyncio
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tasktime.domain.models import User, Category, Task, TimeEntry, TaskStatus, Priority
from tasktime.infra.db import init_db
from tasktime.infra.repository import (
    UserRepository, CategoryRepository, TaskRepository, TimeEntryRepository,
)

DEMO_EMAIL = "demo@example.com"

CATEGORIES = [("Work", "#3B82F6"), ("Study", "#10B981"), ("Health", "#F59E0B")]

TASKS = [
    ("Write quarterly report", "Work", Priority.HIGH),
    ("Code review", "Work", Priority.MEDIUM),
    ("Read SQLAlchemy docs", "Study", Priority.LOW),
    ("Morning run", "Health", Priority.MEDIUM),
    ("Inbox zero", None, Priority.URGENT),
]


async def seed():
    await init_db()
    print("Starting data seeding...")

    user_repo = UserRepository()
    category_repo = CategoryRepository()
    task_repo = TaskRepository()
    entry_repo = TimeEntryRepository()

    user = await user_repo.get_by_email(DEMO_EMAIL)
    if user is None:
        user = await user_repo.create(User(email=DEMO_EMAIL, name="Demo User"))
        print(f"Created user {user.id}: {user.email}")
    else:
        print(f"User exists: {user.id}")

    # 1. Categories
    categories = {}
    for name, color in CATEGORIES:
        category = await category_repo.get_by_name(user.id, name)
        if category is None:
            category = await category_repo.create(Category(name=name, color=color, user_id=user.id))
            print(f"Creating category: {name}")
        categories[name] = category

    # 2. Tasks spread over the last two weeks, each with a few closed entries
    now = datetime.now().replace(second=0, microsecond=0)
    for title, category_name, priority in TASKS:
        created = now - timedelta(days=random.randint(0, 13), hours=random.randint(0, 8))
        task = await task_repo.create(Task(
            title=title,
            description=f"Demo task: {title}",
            priority=priority,
            status=random.choice(list(TaskStatus)),
            category_id=categories[category_name].id if category_name else None,
            user_id=user.id,
            created_at=created,
            updated_at=created,
        ))
        print(f"Creating task: {title}")

        start = created + timedelta(hours=1)
        for _ in range(random.randint(1, 4)):
            if start >= now:
                break
            minutes = random.choice([15, 25, 30, 45, 60, 90])
            end = start + timedelta(minutes=minutes)
            await entry_repo.create(TimeEntry(
                task_id=task.id,
                user_id=user.id,
                start_time=start,
                end_time=end,
                duration_seconds=minutes * 60,
            ))
            start = end + timedelta(hours=random.randint(2, 30))

    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(seed())
