"""
Domain errors.

Services raise these; the caller (CLI or HTTP layer) decides how to present them.
"""


class TaskTimeError(Exception):
    """Base class for all errors raised by tasktime."""


class NotFoundError(TaskTimeError):
    """
    A task, category or time entry does not exist for this user.

    Raised identically when the record exists but belongs to someone else,
    so callers never learn about other users' data.
    """

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found")


class InvalidDateRangeError(TaskTimeError, ValueError):
    """A custom range bound could not be parsed, or the range is inverted."""


class InvalidFilterError(TaskTimeError, ValueError):
    """Analytics filter values failed validation."""


class RetrievalFailureError(TaskTimeError):
    """The underlying storage failed while reading or writing."""


class ConflictError(TaskTimeError):
    """A uniqueness rule would be violated (e.g. duplicate category name)."""


class TimerStateError(TaskTimeError):
    """Timer operation not allowed in the current state."""
