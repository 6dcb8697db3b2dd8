"""
Scheduler Domain Entities.

- TaskRequest: One scheduling request (ephemeral, one per call)
- StoredTask: A task record as held by the job store
- TaskQuery: Filter over stored tasks
- Schedule descriptors: OneShotSchedule | IntervalSchedule | CronSchedule

Status values follow the job store's lifecycle:
pending -> in-progress -> complete | failed, or pending -> canceled.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional, Union


DEFAULT_PRIORITY = 10


class UniqueScope(str, Enum):
    """
    Which request fields form the dedup key.

    - NONE: No duplicate check
    - HOOK: Task name only
    - GROUP: Task name + group
    - ARGS: Task name + group + payload
    """

    NONE = "none"
    HOOK = "hook"
    GROUP = "group"
    ARGS = "args"


class TaskType(str, Enum):
    """One-shot vs. interval-repeating task."""

    ONE_SHOT = "single"
    RECURRING = "recurring"


class TaskStatus(str, Enum):
    """Task status values as reported by the job store."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELED = "canceled"


# Statuses that count as "outstanding" for duplicate detection
LIVE_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


# =============================================================================
# Schedule descriptors
# =============================================================================


@dataclass(frozen=True)
class OneShotSchedule:
    """Runs exactly once at its scheduled time."""

    kind = "single"

    @property
    def is_recurring(self) -> bool:
        return False


@dataclass(frozen=True)
class IntervalSchedule:
    """Re-runs every `interval_seconds` after the first run."""

    interval_seconds: int
    kind = "interval"

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ValueError("IntervalSchedule requires a positive interval")

    @property
    def is_recurring(self) -> bool:
        return True


@dataclass(frozen=True)
class CronSchedule:
    """Re-runs on a cron expression."""

    expression: str
    kind = "cron"

    @property
    def is_recurring(self) -> bool:
        return True


ScheduleDescriptor = Union[OneShotSchedule, IntervalSchedule, CronSchedule]


def schedule_from_row(
    kind: str,
    interval_seconds: Optional[int] = None,
    cron_expression: Optional[str] = None,
) -> ScheduleDescriptor:
    """Rebuild a schedule descriptor from its stored columns."""
    if kind == IntervalSchedule.kind:
        return IntervalSchedule(interval_seconds)
    if kind == CronSchedule.kind:
        return CronSchedule(cron_expression)
    if kind == OneShotSchedule.kind:
        return OneShotSchedule()
    raise ValueError(f"Unknown schedule kind: {kind}")


# =============================================================================
# Requests and records
# =============================================================================


@dataclass
class TaskRequest:
    """
    A request to run a named unit of work later.

    `interval` being set makes this a recurring request. `payload` is
    opaque to the scheduler: it is stored as-is and compared verbatim
    when the ARGS scope is used.
    """

    name: str
    delay: int = 0
    interval: Optional[int] = None
    payload: Any = field(default_factory=list)
    group: str = ""
    priority: Optional[int] = None
    max_runs: Optional[int] = None
    unique: UniqueScope = UniqueScope.NONE

    def __post_init__(self):
        if self.payload is None:
            self.payload = []
        self.unique = UniqueScope(self.unique)

    @property
    def task_type(self) -> TaskType:
        return TaskType.RECURRING if self.interval is not None else TaskType.ONE_SHOT


@dataclass
class StoredTask:
    """A task as recorded by the job store."""

    task_id: int
    name: str
    payload: Any
    group: str
    status: TaskStatus
    schedule: ScheduleDescriptor
    scheduled_at: datetime
    created_at: datetime
    priority: int = DEFAULT_PRIORITY
    max_runs: Optional[int] = None
    run_count: int = 0

    @property
    def is_recurring(self) -> bool:
        return self.schedule.is_recurring

    @property
    def task_type(self) -> TaskType:
        return TaskType.RECURRING if self.is_recurring else TaskType.ONE_SHOT

    @property
    def next_run(self) -> Optional[datetime]:
        """Next execution time; only known while the task is pending."""
        if self.status == TaskStatus.PENDING:
            return self.scheduled_at
        return None

    def to_dict(self) -> dict:
        next_run = self.next_run
        return {
            "id": self.task_id,
            "name": self.name,
            "args": self.payload,
            "group": self.group,
            "status": self.status.value,
            "schedule": self.schedule.kind,
            "recurring": self.is_recurring,
            "next_run": int(next_run.timestamp()) if next_run else None,
        }


@dataclass
class TaskQuery:
    """
    Filter over stored tasks.

    `name`, `group` and `payload` are exact-match filters; None means
    "do not filter on this field". `statuses` always filters: an empty
    sequence matches no task.
    """

    name: Optional[str] = None
    group: Optional[str] = None
    payload: Any = None
    statuses: tuple = LIVE_STATUSES
    limit: Optional[int] = None

    def __post_init__(self):
        self.statuses = normalize_statuses(self.statuses)


def normalize_statuses(
    status: Union[TaskStatus, str, Iterable[Union[TaskStatus, str]]],
) -> tuple:
    """Accept one status, its string value, or a sequence of either."""
    if isinstance(status, (TaskStatus, str)):
        return (TaskStatus(status),)
    return tuple(TaskStatus(s) for s in status)
