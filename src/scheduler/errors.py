"""
Scheduler-specific exceptions.

Every error carries an ErrorKind so callers (and the API layer) can
branch on the failure category without matching exception classes.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure categories surfaced by DedupScheduler."""

    STORE_UNAVAILABLE = "store_unavailable"
    INVALID_NAME = "invalid_name"
    INVALID_DELAY = "invalid_delay"
    INVALID_INTERVAL = "invalid_interval"
    SCHEDULE_FAILED = "schedule_failed"
    CANCEL_FAILED = "cancel_failed"
    DELETE_FAILED = "delete_failed"
    TASK_NOT_FOUND = "task_not_found"
    STORE_ERROR = "store_error"


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""

    kind: ErrorKind = ErrorKind.STORE_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StoreUnavailableError(SchedulerError):
    """
    Raised when the Job Store is not ready.

    `reason` is one of: not_loaded, not_initialized, storage_missing, unknown.
    It is diagnostic only; all reasons take the same control path.
    """

    kind = ErrorKind.STORE_UNAVAILABLE

    MESSAGES = {
        "not_loaded": "Job store could not be loaded.",
        "not_initialized": "Job store is loaded but not initialized.",
        "storage_missing": "Job store tables are missing. Ensure the store has been initialized.",
        "unknown": "Job store is not ready for unknown reasons. Check logs for details.",
    }

    def __init__(self, reason: str = "unknown"):
        self.reason = reason if reason in self.MESSAGES else "unknown"
        super().__init__(self.MESSAGES[self.reason])


class ValidationError(SchedulerError):
    """Raised before any store call when a request is malformed."""
    pass


class InvalidNameError(ValidationError):
    kind = ErrorKind.INVALID_NAME

    def __init__(self, message: str = "Task name cannot be empty."):
        super().__init__(message)


class InvalidDelayError(ValidationError):
    kind = ErrorKind.INVALID_DELAY

    def __init__(self, message: str = "Delay cannot be negative."):
        super().__init__(message)


class InvalidIntervalError(ValidationError):
    kind = ErrorKind.INVALID_INTERVAL

    def __init__(self, message: str = "Interval must be greater than 0."):
        super().__init__(message)


class ScheduleFailedError(SchedulerError):
    kind = ErrorKind.SCHEDULE_FAILED


class CancelFailedError(SchedulerError):
    kind = ErrorKind.CANCEL_FAILED

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(
            f"Failed to cancel task {task_id}. Task may not exist or already be completed."
        )


class DeleteFailedError(SchedulerError):
    kind = ErrorKind.DELETE_FAILED

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(
            f"Failed to delete task {task_id}. Task may not exist or already be completed."
        )


class TaskNotFoundError(SchedulerError):
    """Raised when a requested task does not exist."""

    kind = ErrorKind.TASK_NOT_FOUND

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class StoreError(SchedulerError):
    """
    Wraps an unexpected exception raised by the Job Store.

    The original exception message is kept in `details` and the
    exception itself is chained as __cause__.
    """

    kind = ErrorKind.STORE_ERROR

    def __init__(self, message: str, details: Optional[str] = None):
        self.details = details
        super().__init__(message)
