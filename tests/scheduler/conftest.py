"""
Scheduler Test Fixtures.

Base fixtures:
  - Empty SQLite job store
  - Mocked clock at fixed time
  - DedupScheduler wired to both
"""

import pytest
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, Optional
from unittest.mock import MagicMock

from src.scheduler import (
    DedupScheduler,
    JobStore,
    SchedulerConfig,
    SqliteJobStore,
    StoredTask,
    TaskQuery,
    TaskStatus,
    OneShotSchedule,
)


FIXED_DATETIME = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class MockClock:
    """
    Mock clock for deterministic time control.

    - Starts at fixed epoch
    - Advances only when explicitly ticked
    """

    def __init__(self, start_time: datetime = FIXED_DATETIME):
        self._current = start_time

    def now(self) -> datetime:
        return self._current

    def __call__(self) -> datetime:
        return self._current

    def tick(self, seconds: int = 1) -> None:
        """Advance time by specified seconds."""
        self._current += timedelta(seconds=seconds)


class StubJobStore(JobStore):
    """
    In-memory JobStore returning preset tasks.

    Used where a test needs records the SQLite store never produces
    (cron schedules, a specific query order) or needs to count calls.
    """

    def __init__(self, tasks: Optional[list[StoredTask]] = None, ready: bool = True):
        self.tasks = list(tasks or [])
        self.ready = ready
        self.scheduled: list[tuple] = []
        self._next_id = 1000

    def _next(self) -> int:
        self._next_id += 1
        return self._next_id

    def schedule_once(self, at, name, payload, group, priority):
        self.scheduled.append(("single", at, name, payload, group, priority))
        return self._next()

    def schedule_recurring(self, at, interval, name, payload, group, max_runs, priority):
        self.scheduled.append(("recurring", at, interval, name, payload, group, max_runs, priority))
        return self._next()

    def cancel(self, task_id):
        return False

    def delete(self, task_id):
        return False

    def query(self, query: TaskQuery) -> list[StoredTask]:
        return [
            t for t in self.tasks
            if (query.name is None or t.name == query.name)
            and (query.group is None or t.group == query.group)
            and (query.payload is None or t.payload == query.payload)
            and t.status in query.statuses
        ]

    def fetch(self, task_id):
        return next((t for t in self.tasks if t.task_id == task_id), None)

    def fetch_status(self, task_id):
        task = self.fetch(task_id)
        return task.status if task else None

    def is_ready(self) -> bool:
        return self.ready


def make_task(
    task_id: int,
    name: str = "queue_sync",
    group: str = "queue_default",
    payload=None,
    status: TaskStatus = TaskStatus.PENDING,
    schedule=None,
    created_at: Optional[datetime] = None,
) -> StoredTask:
    """Build a StoredTask with sensible defaults."""
    return StoredTask(
        task_id=task_id,
        name=name,
        payload=payload if payload is not None else [],
        group=group,
        status=status,
        schedule=schedule or OneShotSchedule(),
        scheduled_at=FIXED_DATETIME,
        created_at=created_at or FIXED_DATETIME,
    )


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield db_path

    Path(db_path).unlink(missing_ok=True)
    Path(f"{db_path}-wal").unlink(missing_ok=True)
    Path(f"{db_path}-shm").unlink(missing_ok=True)


@pytest.fixture
def store(temp_db_path: str) -> SqliteJobStore:
    """Create a fresh SqliteJobStore with an empty database."""
    return SqliteJobStore(temp_db_path)


@pytest.fixture
def mock_store() -> MagicMock:
    """A JobStore mock that reports ready and records every call."""
    mock = MagicMock(spec=JobStore)
    mock.is_ready.return_value = True
    return mock


# =============================================================================
# Scheduler Fixtures
# =============================================================================


@pytest.fixture
def mock_clock() -> MockClock:
    return MockClock()


@pytest.fixture
def config() -> SchedulerConfig:
    return SchedulerConfig()


@pytest.fixture
def scheduler(store: SqliteJobStore, config: SchedulerConfig, mock_clock: MockClock) -> DedupScheduler:
    """DedupScheduler over a real SQLite store."""
    return DedupScheduler(store, config=config, clock=mock_clock)


@pytest.fixture
def make_scheduler(config: SchedulerConfig, mock_clock: MockClock) -> Callable:
    """Factory for a DedupScheduler over an arbitrary store."""

    def _make(job_store) -> DedupScheduler:
        return DedupScheduler(job_store, config=config, clock=mock_clock)

    return _make
