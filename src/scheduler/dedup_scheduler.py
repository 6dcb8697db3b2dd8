"""
Deduplicating scheduler.

Decides whether a request to run a named task later duplicates a task
that is already outstanding in the job store, and returns that task's
handle instead of creating a second one.

Flow:
    schedule(request)
      -> validate (no store calls yet)
      -> ensure_ready (store availability probe)
      -> resolve name / group / execution time / priority
      -> unique == NONE: schedule directly
      -> otherwise: query live candidates, keep those of the same type
         (one-shot vs recurring), return the oldest or schedule a new task

The duplicate check is read-then-write with no lock across the two
store calls: concurrent callers with the same dedup key can both end up
scheduling. A strict single-writer guarantee needs a unique constraint
inside the job store itself.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional, TypeVar, Union

from .config import SchedulerConfig
from .entities import (
    DEFAULT_PRIORITY,
    LIVE_STATUSES,
    TaskQuery,
    TaskRequest,
    TaskStatus,
    TaskType,
    UniqueScope,
    normalize_statuses,
)
from .errors import (
    CancelFailedError,
    DeleteFailedError,
    InvalidDelayError,
    InvalidIntervalError,
    InvalidNameError,
    ScheduleFailedError,
    SchedulerError,
    StoreError,
    StoreUnavailableError,
    TaskNotFoundError,
)
from .job_store import JobStore
from .sanitize import sanitize_key


logger = logging.getLogger(__name__)

T = TypeVar("T")

StatusArg = Union[TaskStatus, str, Iterable[Union[TaskStatus, str]]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DedupScheduler:
    """
    Idempotent scheduling front-end for a JobStore.

    Each instance owns its SchedulerConfig; the config is read on every
    call, so reconfiguring it affects subsequent calls only.
    """

    def __init__(
        self,
        store: JobStore,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            store: Job store receiving schedule/query/cancel calls
            config: Name prefix, default group and log label
            clock: Returns the current time (aware UTC by default)
        """
        self.store = store
        self.config = config if config is not None else SchedulerConfig()
        self._clock = clock or _utc_now

    # =========================================================================
    # Helpers
    # =========================================================================

    @property
    def _label(self) -> str:
        return self.config.log_prefix

    def normalize_name(self, raw: str) -> str:
        """
        Return `raw` with exactly one copy of the current prefix.

        Every leading occurrence of the prefix is stripped first, so a
        name that was prefixed twice collapses back to a single prefix.
        """
        prefix = self.config.name_prefix
        if not raw or not prefix:
            return raw

        name = raw
        while name.startswith(prefix):
            name = name[len(prefix):]

        return prefix + name

    def full_name(self, name: str) -> str:
        """Sanitized name with the current prefix applied once."""
        return self.normalize_name(sanitize_key(name))

    def _resolve_group(self, group: str) -> str:
        return sanitize_key(group) if group else self.config.default_group

    def _run_guarded(self, func: Callable[[], T], log_message: str, error_message: str) -> T:
        """
        Run a store call, wrapping unexpected failures in StoreError.

        SchedulerErrors raised inside `func` propagate unchanged.
        """
        try:
            return func()
        except SchedulerError:
            raise
        except Exception as e:
            logger.error(f"{self._label}: {log_message}{e}")
            raise StoreError(error_message, details=str(e)) from e

    def _is_ready_quietly(self) -> bool:
        """Availability probe for soft helpers: never raises."""
        try:
            return bool(self.store.is_ready())
        except Exception as e:
            logger.error(f"{self._label}: Error probing job store: {e}")
            return False

    # =========================================================================
    # Availability
    # =========================================================================

    def is_available(self) -> bool:
        return self._is_ready_quietly()

    def get_initialization_status(self) -> dict:
        """Detailed readiness report from the job store."""
        try:
            return self.store.initialization_status()
        except Exception as e:
            logger.error(f"{self._label}: Error reading job store status: {e}")
            return {
                "store_loaded": False,
                "store_initialized": False,
                "tables_exist": False,
                "ready": False,
                "errors": [f"Job store status unavailable: {e}"],
            }

    def ensure_ready(self) -> None:
        """
        Raise StoreUnavailableError unless the job store is ready.

        The sub-reason is derived from the store's initialization report
        and only affects the error message.
        """
        if self._is_ready_quietly():
            return

        status = self.get_initialization_status()
        if not status.get("store_loaded"):
            reason = "not_loaded"
        elif not status.get("store_initialized"):
            reason = "not_initialized"
        elif not status.get("tables_exist"):
            reason = "storage_missing"
        else:
            reason = "unknown"

        logger.error(f"{self._label}: Job store unavailable ({reason}): {status.get('errors')}")
        raise StoreUnavailableError(reason)

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, request: TaskRequest) -> None:
        """
        Check a request before anything touches the job store.

        Raises:
            InvalidIntervalError: Recurring request with interval <= 0
            InvalidNameError: Name empty after trimming or after sanitizing
            InvalidDelayError: Negative delay
        """
        if request.task_type == TaskType.RECURRING and request.interval <= 0:
            raise InvalidIntervalError()

        if not request.name or not request.name.strip():
            raise InvalidNameError()

        if not sanitize_key(request.name):
            raise InvalidNameError(f"Task name has no usable characters: {request.name!r}")

        if request.delay < 0:
            raise InvalidDelayError()

    # =========================================================================
    # Scheduling
    # =========================================================================

    def schedule(self, request: TaskRequest) -> int:
        """
        Schedule a request, reusing an equivalent live task when asked to.

        Returns:
            Handle of the new task, or of the existing duplicate

        Raises:
            ValidationError subclasses, StoreUnavailableError,
            ScheduleFailedError, StoreError
        """
        self.validate(request)
        self.ensure_ready()

        full_name = self.full_name(request.name)
        group = self._resolve_group(request.group)
        execution_time = self._clock()
        if request.delay > 0:
            execution_time += timedelta(seconds=request.delay)
        priority = request.priority if request.priority is not None else DEFAULT_PRIORITY

        if request.unique == UniqueScope.NONE:
            return self._run_guarded(
                lambda: self._create(request, full_name, group, execution_time, priority),
                f"Error adding {request.task_type.value} task to queue: ",
                f"Failed to add {request.task_type.value} task to queue.",
            )

        return self._run_guarded(
            lambda: self._schedule_unique(request, full_name, group, execution_time, priority),
            f"Error adding unique {request.task_type.value} task to queue: ",
            f"Failed to add unique {request.task_type.value} task to queue.",
        )

    def schedule_once(
        self,
        name: str,
        delay: int = 0,
        payload: Any = None,
        group: str = "",
        priority: Optional[int] = None,
        unique: Union[UniqueScope, str] = UniqueScope.NONE,
    ) -> int:
        """Schedule a task to run once, `delay` seconds from now."""
        return self.schedule(
            TaskRequest(
                name=name,
                delay=delay,
                payload=payload,
                group=group,
                priority=priority,
                unique=unique,
            )
        )

    def schedule_recurring(
        self,
        name: str,
        interval: int,
        payload: Any = None,
        delay: int = 0,
        group: str = "",
        priority: Optional[int] = None,
        max_runs: Optional[int] = None,
        unique: Union[UniqueScope, str] = UniqueScope.NONE,
    ) -> int:
        """Schedule a task every `interval` seconds, starting `delay` seconds from now."""
        return self.schedule(
            TaskRequest(
                name=name,
                delay=delay,
                interval=interval,
                payload=payload,
                group=group,
                priority=priority,
                max_runs=max_runs,
                unique=unique,
            )
        )

    def _create(
        self,
        request: TaskRequest,
        full_name: str,
        group: str,
        execution_time: datetime,
        priority: int,
    ) -> int:
        if request.task_type == TaskType.RECURRING:
            task_id = self.store.schedule_recurring(
                execution_time,
                request.interval,
                full_name,
                request.payload,
                group,
                request.max_runs,
                priority,
            )
        else:
            task_id = self.store.schedule_once(
                execution_time,
                full_name,
                request.payload,
                group,
                priority,
            )

        if not task_id:
            kind = "recurring action" if request.task_type == TaskType.RECURRING else "action"
            raise ScheduleFailedError(f"Failed to schedule {kind}.")

        return task_id

    def _schedule_unique(
        self,
        request: TaskRequest,
        full_name: str,
        group: str,
        execution_time: datetime,
        priority: int,
    ) -> int:
        query = TaskQuery(name=full_name, statuses=LIVE_STATUSES)
        if request.unique in (UniqueScope.GROUP, UniqueScope.ARGS):
            query.group = group
        if request.unique == UniqueScope.ARGS:
            query.payload = request.payload

        # A one-shot request never matches a recurring task and vice versa
        matching = [
            task
            for task in self.store.query(query)
            if task.task_type == request.task_type
        ]

        if matching:
            existing = min(matching, key=lambda t: (t.created_at, t.task_id))
            kind = "recurring action" if request.task_type == TaskType.RECURRING else "action"
            logger.info(
                f"{self._label}: Duplicate {kind} detected "
                f"({self._describe_scope(request.unique, full_name, group, request.payload)}). "
                f"Returning existing action ID: {existing.task_id}"
            )
            return existing.task_id

        return self._create(request, full_name, group, execution_time, priority)

    @staticmethod
    def _describe_scope(unique: UniqueScope, full_name: str, group: str, payload: Any) -> str:
        if unique == UniqueScope.HOOK:
            return f"hook: {full_name}"
        if unique == UniqueScope.GROUP:
            return f"hook: {full_name}, group: {group}"
        if unique == UniqueScope.ARGS:
            return f"hook: {full_name}, group: {group}, args: {json.dumps(payload, default=str)}"
        return "unknown uniqueness level"

    # =========================================================================
    # Management
    # =========================================================================

    def cancel_task(self, task_id: int) -> bool:
        """
        Cancel a scheduled task.

        Raises:
            CancelFailedError: Task missing, running or already finished
        """
        self.ensure_ready()

        def _cancel() -> bool:
            if self.store.cancel(task_id):
                return True
            raise CancelFailedError(task_id)

        return self._run_guarded(_cancel, "Error cancelling task: ", "Failed to cancel task.")

    def delete_task(self, task_id: int) -> bool:
        """
        Remove a task from the store.

        Raises:
            DeleteFailedError: Nothing was removed
        """
        self.ensure_ready()

        def _delete() -> bool:
            if self.store.delete(task_id):
                return True
            raise DeleteFailedError(task_id)

        return self._run_guarded(_delete, "Error deleting task: ", "Failed to delete task.")

    def get_task_status(self, task_id: int) -> TaskStatus:
        """
        Raises:
            TaskNotFoundError: Unknown task id
        """
        self.ensure_ready()

        def _status() -> TaskStatus:
            status = self.store.fetch_status(task_id)
            if status is None:
                raise TaskNotFoundError(task_id)
            return status

        return self._run_guarded(_status, "Error getting task status: ", "Failed to get task status.")

    def clear_group_tasks(self, group: str) -> int:
        """Cancel every pending task in `group`. Returns the number cancelled."""
        self.ensure_ready()
        group = sanitize_key(group)

        def _clear() -> int:
            tasks = self.store.query(TaskQuery(group=group, statuses=TaskStatus.PENDING))
            return sum(1 for task in tasks if self.store.cancel(task.task_id))

        cleared = self._run_guarded(_clear, "Error clearing group tasks: ", "Failed to clear group tasks.")
        logger.info(f"{self._label}: Cleared {cleared} pending task(s) from group {group}")
        return cleared

    # =========================================================================
    # Listing
    # =========================================================================

    def _list(
        self,
        build_query: Callable[[], TaskQuery],
        log_message: str,
        error_message: str,
    ) -> list[dict]:
        self.ensure_ready()
        return self._run_guarded(
            lambda: [task.to_dict() for task in self.store.query(build_query())],
            log_message,
            error_message,
        )

    def get_tasks_by_group(
        self,
        group: str,
        status: StatusArg = TaskStatus.PENDING,
        limit: int = 50,
    ) -> list[dict]:
        return self._list(
            lambda: TaskQuery(group=sanitize_key(group), statuses=status, limit=limit),
            "Error getting tasks by group: ",
            "Failed to get tasks by group.",
        )

    def get_tasks_by_args(
        self,
        name: str,
        payload: Any,
        group: str = "",
        status: StatusArg = TaskStatus.PENDING,
    ) -> list[dict]:
        return self._list(
            lambda: TaskQuery(
                name=self.full_name(name),
                group=sanitize_key(group) or None,
                payload=payload if payload is not None else [],
                statuses=status,
            ),
            "Error getting tasks by args: ",
            "Failed to get tasks by args.",
        )

    def get_tasks_by_name(
        self,
        name: str,
        group: str = "",
        status: StatusArg = TaskStatus.PENDING,
    ) -> list[dict]:
        """List tasks by name; each entry includes `recurring` and `next_run`."""
        return self._list(
            lambda: TaskQuery(
                name=self.full_name(name),
                group=sanitize_key(group) or None,
                statuses=status,
            ),
            "Error getting tasks by hook: ",
            "Failed to get tasks by hook.",
        )

    # =========================================================================
    # Soft lookups: unknown and absent are treated the same
    # =========================================================================

    def find_task(self, name: str, payload: Any, group: str = "") -> Optional[int]:
        """Handle of the oldest live task with this name and payload, or None."""
        if not self._is_ready_quietly():
            return None

        try:
            tasks = self.store.query(
                TaskQuery(
                    name=self.full_name(name),
                    group=sanitize_key(group) or None,
                    payload=payload if payload is not None else [],
                    statuses=LIVE_STATUSES,
                )
            )
        except Exception as e:
            logger.error(f"{self._label}: Error getting task by hook and args: {e}")
            return None

        if not tasks:
            return None
        return min(tasks, key=lambda t: (t.created_at, t.task_id)).task_id

    def has_scheduled_task(
        self,
        name: str,
        group: str = "",
        status: StatusArg = TaskStatus.PENDING,
    ) -> bool:
        if not self._is_ready_quietly():
            return False

        try:
            tasks = self.store.query(
                TaskQuery(
                    name=self.full_name(name),
                    group=sanitize_key(group) or None,
                    statuses=status,
                    limit=1,
                )
            )
        except Exception as e:
            logger.error(f"{self._label}: Error checking scheduled task: {e}")
            return False

        return bool(tasks)

    def has_scheduled_recurring_task(
        self,
        name: str,
        group: str = "",
        status: StatusArg = TaskStatus.PENDING,
    ) -> bool:
        """
        True if a recurring task with this name is live.

        Only live statuses are scanned: the requested live statuses first,
        then the remaining ones. Finished and cancelled tasks never count.
        Each candidate is re-fetched for its schedule; a task that cannot
        be fetched is logged and skipped.
        """
        if not self._is_ready_quietly():
            return False

        try:
            requested = [s for s in normalize_statuses(status) if s in LIVE_STATUSES]
            statuses = requested + [s for s in LIVE_STATUSES if s not in requested]
            full_name = self.full_name(name)
            group = sanitize_key(group) or None

            for check_status in statuses:
                candidates = self.store.query(
                    TaskQuery(name=full_name, group=group, statuses=check_status)
                )
                for candidate in candidates:
                    try:
                        task = self.store.fetch(candidate.task_id)
                    except Exception as e:
                        logger.error(
                            f"{self._label}: Error fetching action {candidate.task_id}: {e}"
                        )
                        continue

                    if task is not None and task.is_recurring:
                        return True
        except Exception as e:
            logger.error(f"{self._label}: Error checking scheduled recurring task: {e}")
            return False

        return False

    def get_task_count(
        self,
        name: str,
        payload: Any = None,
        group: str = "",
        status: StatusArg = TaskStatus.PENDING,
    ) -> int:
        """Number of tasks with this name (and payload, when given)."""
        if not self._is_ready_quietly():
            return 0

        try:
            tasks = self.store.query(
                TaskQuery(
                    name=self.full_name(name),
                    group=sanitize_key(group) or None,
                    payload=payload,
                    statuses=status,
                )
            )
        except Exception as e:
            logger.error(f"{self._label}: Error getting task count: {e}")
            return 0

        return len(tasks)
