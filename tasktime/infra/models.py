"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import UserModel, CategoryModel, TaskModel, TimeEntryModel, Base

__all__ = ["UserModel", "CategoryModel", "TaskModel", "TimeEntryModel", "Base"]
