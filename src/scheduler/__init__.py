"""
Deduplicating Task Scheduler.

- SchedulerConfig: name prefix, default group, log label
- DedupScheduler: validation, normalization and duplicate detection
- JobStore: contract for the persistent delayed-job queue
- SqliteJobStore: SQLite-backed JobStore
"""

from .config import SchedulerConfig
from .entities import (
    UniqueScope,
    TaskType,
    TaskStatus,
    LIVE_STATUSES,
    OneShotSchedule,
    IntervalSchedule,
    CronSchedule,
    TaskRequest,
    StoredTask,
    TaskQuery,
)
from .errors import (
    ErrorKind,
    SchedulerError,
    StoreUnavailableError,
    ValidationError,
    InvalidNameError,
    InvalidDelayError,
    InvalidIntervalError,
    ScheduleFailedError,
    CancelFailedError,
    DeleteFailedError,
    TaskNotFoundError,
    StoreError,
)
from .job_store import JobStore
from .persistence import SqliteJobStore
from .dedup_scheduler import DedupScheduler

__all__ = [
    # Config
    "SchedulerConfig",
    # Entities
    "UniqueScope",
    "TaskType",
    "TaskStatus",
    "LIVE_STATUSES",
    "OneShotSchedule",
    "IntervalSchedule",
    "CronSchedule",
    "TaskRequest",
    "StoredTask",
    "TaskQuery",
    # Errors
    "ErrorKind",
    "SchedulerError",
    "StoreUnavailableError",
    "ValidationError",
    "InvalidNameError",
    "InvalidDelayError",
    "InvalidIntervalError",
    "ScheduleFailedError",
    "CancelFailedError",
    "DeleteFailedError",
    "TaskNotFoundError",
    "StoreError",
    # Store
    "JobStore",
    "SqliteJobStore",
    # Scheduler
    "DedupScheduler",
]
