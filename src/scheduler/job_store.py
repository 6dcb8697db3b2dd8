"""
Job store contract.

The job store persists tasks, executes them and handles retries; the
scheduler only asks it to create, query and cancel tasks. Any backend
implementing JobStore can sit behind DedupScheduler.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from .entities import StoredTask, TaskQuery, TaskStatus


class JobStore(ABC):
    """
    Abstract base class for persistent delayed-job queues.

    Handles returned by the schedule methods are positive integers;
    0 or None signals that nothing was scheduled.
    """

    @abstractmethod
    def schedule_once(
        self,
        at: datetime,
        name: str,
        payload: Any,
        group: str,
        priority: int,
    ) -> Optional[int]:
        """Schedule a one-shot task at `at`. Returns the task handle."""
        ...

    @abstractmethod
    def schedule_recurring(
        self,
        at: datetime,
        interval: int,
        name: str,
        payload: Any,
        group: str,
        max_runs: Optional[int],
        priority: int,
    ) -> Optional[int]:
        """
        Schedule a task that first runs at `at` and then every `interval`
        seconds, at most `max_runs` times (None = unlimited).
        """
        ...

    @abstractmethod
    def cancel(self, task_id: int) -> bool:
        """Cancel a pending task. Returns False if nothing was cancelled."""
        ...

    @abstractmethod
    def delete(self, task_id: int) -> bool:
        """Remove a task. Returns False if nothing was removed."""
        ...

    @abstractmethod
    def query(self, query: TaskQuery) -> list[StoredTask]:
        """Return tasks matching the filter."""
        ...

    @abstractmethod
    def fetch(self, task_id: int) -> Optional[StoredTask]:
        """Return a single task including its schedule, or None."""
        ...

    @abstractmethod
    def fetch_status(self, task_id: int) -> Optional[TaskStatus]:
        """Return the task status, or None if the task does not exist."""
        ...

    @abstractmethod
    def is_ready(self) -> bool:
        """Availability probe."""
        ...

    def initialization_status(self) -> dict:
        """
        Detailed readiness report.

        Stores that can tell *why* they are not ready should override this;
        the default only knows whether the store is ready.
        """
        ready = self.is_ready()
        return {
            "store_loaded": True,
            "store_initialized": ready,
            "tables_exist": ready,
            "ready": ready,
            "errors": [] if ready else ["Job store is not ready"],
        }
