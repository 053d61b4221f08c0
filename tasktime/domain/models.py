"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Pydantic provides runtime data validation, ensuring data integrity when loading
from the database or from caller supplied filters. It also provides easy
serialization for the presentation layer.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator


HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


class TaskStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class User(BaseModel):
    """
    Owner of tasks, categories and time entries.

    Authentication lives outside this package; only the identity is needed here.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    email: str = Field(..., min_length=3, max_length=255)
    name: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class Category(BaseModel):
    """
    Groups tasks. Names are unique per owner.

    Examples: "Work", "Study", "Health"
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#3B82F6", pattern=HEX_COLOR_PATTERN)
    user_id: int
    created_at: datetime = Field(default_factory=datetime.now)

    # Computed by list queries
    task_count: int = 0


class Task(BaseModel):
    """
    Represents a trackable task owned by a single user.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    category_id: Optional[int] = None
    user_id: int

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    # Computed fields
    total_seconds: int = 0  # Computed from closed time entries


class TimeEntry(BaseModel):
    """
    Represents a single timer session against a task.

    An entry is open while end_time is None. At most one entry per user is open.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    user_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: int = 0  # Populated when the entry is closed

    @property
    def is_closed(self) -> bool:
        return self.end_time is not None


class TaskDetail(Task):
    """
    A task together with its category and time entries.

    Returned by analytics retrieval, where only closed entries are attached.
    """
    category: Optional[Category] = None
    time_entries: List[TimeEntry] = Field(default_factory=list)


class TaskCreate(BaseModel):
    """Payload for creating a task."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    category_id: Optional[int] = None


class TaskUpdate(BaseModel):
    """Partial update payload. Only fields that were set are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    category_id: Optional[int] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, v, info):
        # Leave the field out to keep it; only description and category can be cleared
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
