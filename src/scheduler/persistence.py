"""
SQLite Job Store.

Reference JobStore backed by a single SQLite file:
- WAL mode for concurrent readers
- Integer autoincrement task handles (never 0)
- Payload stored as canonical JSON so ARGS matching is an exact string
  comparison (dict key order does not matter, list order does)
- Atomic pending -> in-progress claim for workers

Execution, retries and worker dispatch are the caller's responsibility;
this adapter only records state.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from .entities import (
    DEFAULT_PRIORITY,
    CronSchedule,
    IntervalSchedule,
    OneShotSchedule,
    ScheduleDescriptor,
    StoredTask,
    TaskQuery,
    TaskStatus,
    schedule_from_row,
)
from .errors import TaskNotFoundError
from .job_store import JobStore


logger = logging.getLogger(__name__)

TASKS_TABLE = "tasks"


def encode_payload(payload: Any) -> str:
    """Canonical JSON used both for storage and for exact-match queries."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class SqliteJobStore(JobStore):
    """
    SQLite-based persistence for scheduled tasks.

    - Abstracts SQLite storage
    - Does NOT contain deduplication logic
    - Does NOT execute tasks
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize the store and create its schema.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = str(db_path)
        self._initialized = False
        self._init_db()
        self._initialized = True

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {TASKS_TABLE} (
                    task_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    group_name TEXT NOT NULL,
                    payload TEXT NOT NULL DEFAULT '[]',
                    status TEXT NOT NULL,
                    priority INTEGER NOT NULL DEFAULT {DEFAULT_PRIORITY},
                    schedule_kind TEXT NOT NULL,
                    interval_seconds INTEGER,
                    cron_expression TEXT,
                    max_runs INTEGER,
                    run_count INTEGER NOT NULL DEFAULT 0,
                    scheduled_at TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    started_at TEXT,
                    finished_at TEXT
                )
            """)

            # Duplicate lookups always filter by name + status
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_tasks_name_status
                ON {TASKS_TABLE} (name, status)
            """)

            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_tasks_group_status
                ON {TASKS_TABLE} (group_name, status)
            """)

    # =========================================================================
    # Availability
    # =========================================================================

    def _tables_exist(self) -> bool:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (TASKS_TABLE,),
            ).fetchone()
        return row is not None

    def is_ready(self) -> bool:
        return self.initialization_status()["ready"]

    def initialization_status(self) -> dict:
        status = {
            "store_loaded": True,
            "store_initialized": self._initialized,
            "tables_exist": False,
            "ready": False,
            "errors": [],
        }

        if not self._initialized:
            status["errors"].append("Job store is not initialized")
            return status

        try:
            status["tables_exist"] = self._tables_exist()
        except sqlite3.Error as e:
            logger.error(f"[SqliteJobStore] Cannot open {self.db_path}: {e}")
            status["errors"].append(f"Job store database unavailable: {e}")
            return status

        if not status["tables_exist"]:
            status["errors"].append("Job store tables do not exist")
            return status

        status["ready"] = True
        return status

    # =========================================================================
    # Scheduling
    # =========================================================================

    def _insert(
        self,
        at: datetime,
        name: str,
        payload: Any,
        group: str,
        priority: int,
        schedule: ScheduleDescriptor,
        max_runs: Optional[int] = None,
    ) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO {TASKS_TABLE}
                (name, group_name, payload, status, priority, schedule_kind,
                 interval_seconds, cron_expression, max_runs, scheduled_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    name,
                    group,
                    encode_payload(payload),
                    TaskStatus.PENDING.value,
                    priority,
                    schedule.kind,
                    getattr(schedule, "interval_seconds", None),
                    getattr(schedule, "expression", None),
                    max_runs,
                    _to_iso(at),
                    _to_iso(_utc_now()),
                ),
            )
            return cursor.lastrowid

    def schedule_once(
        self,
        at: datetime,
        name: str,
        payload: Any,
        group: str,
        priority: int = DEFAULT_PRIORITY,
    ) -> int:
        return self._insert(at, name, payload, group, priority, OneShotSchedule())

    def schedule_recurring(
        self,
        at: datetime,
        interval: int,
        name: str,
        payload: Any,
        group: str,
        max_runs: Optional[int] = None,
        priority: int = DEFAULT_PRIORITY,
    ) -> int:
        return self._insert(
            at, name, payload, group, priority, IntervalSchedule(interval), max_runs
        )

    def schedule_cron(
        self,
        at: datetime,
        expression: str,
        name: str,
        payload: Any,
        group: str,
        priority: int = DEFAULT_PRIORITY,
    ) -> int:
        """Schedule a cron-driven task whose first run is at `at`."""
        return self._insert(at, name, payload, group, priority, CronSchedule(expression))

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel(self, task_id: int) -> bool:
        """Cancel a pending task. In-progress and finished tasks are left alone."""
        with self._transaction() as conn:
            cursor = conn.execute(
                f"""
                UPDATE {TASKS_TABLE}
                SET status = ?, finished_at = ?
                WHERE task_id = ? AND status = ?
                """,
                (
                    TaskStatus.CANCELED.value,
                    _to_iso(_utc_now()),
                    task_id,
                    TaskStatus.PENDING.value,
                ),
            )
            return cursor.rowcount > 0

    def delete(self, task_id: int) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                f"DELETE FROM {TASKS_TABLE} WHERE task_id = ?",
                (task_id,),
            )
            return cursor.rowcount > 0

    # =========================================================================
    # Queries
    # =========================================================================

    def _row_to_task(self, row: sqlite3.Row) -> StoredTask:
        """Convert a database row to a StoredTask."""
        return StoredTask(
            task_id=row["task_id"],
            name=row["name"],
            payload=json.loads(row["payload"]),
            group=row["group_name"],
            status=TaskStatus(row["status"]),
            schedule=schedule_from_row(
                row["schedule_kind"],
                interval_seconds=row["interval_seconds"],
                cron_expression=row["cron_expression"],
            ),
            scheduled_at=datetime.fromisoformat(row["scheduled_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            priority=row["priority"],
            max_runs=row["max_runs"],
            run_count=row["run_count"],
        )

    def query(self, query: TaskQuery) -> list[StoredTask]:
        """
        Return tasks matching the filter, oldest first.

        Ties on created_at are broken by task_id so the order is stable.
        An empty status set matches nothing.
        """
        if not query.statuses:
            return []

        clauses = []
        values: list = []

        if query.name is not None:
            clauses.append("name = ?")
            values.append(query.name)
        if query.group is not None:
            clauses.append("group_name = ?")
            values.append(query.group)
        if query.payload is not None:
            clauses.append("payload = ?")
            values.append(encode_payload(query.payload))
        placeholders = ", ".join("?" for _ in query.statuses)
        clauses.append(f"status IN ({placeholders})")
        values.extend(s.value for s in query.statuses)

        sql = f"SELECT * FROM {TASKS_TABLE} WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at ASC, task_id ASC"
        if query.limit is not None:
            sql += " LIMIT ?"
            values.append(query.limit)

        with self._connection() as conn:
            rows = conn.execute(sql, values).fetchall()

        return [self._row_to_task(row) for row in rows]

    def fetch(self, task_id: int) -> Optional[StoredTask]:
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {TASKS_TABLE} WHERE task_id = ?",
                (task_id,),
            ).fetchone()

        if row is None:
            return None

        return self._row_to_task(row)

    def fetch_status(self, task_id: int) -> Optional[TaskStatus]:
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT status FROM {TASKS_TABLE} WHERE task_id = ?",
                (task_id,),
            ).fetchone()

        if row is None:
            return None

        return TaskStatus(row["status"])

    # =========================================================================
    # Worker-side transitions
    # =========================================================================

    def claim(self, task_id: int) -> Optional[StoredTask]:
        """
        Atomically move a task from pending to in-progress.

        Returns:
            The claimed task, or None if it was not pending (already
            claimed by another worker, cancelled, or missing)
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                f"""
                UPDATE {TASKS_TABLE}
                SET status = ?, started_at = ?
                WHERE task_id = ? AND status = ?
                """,
                (
                    TaskStatus.IN_PROGRESS.value,
                    _to_iso(_utc_now()),
                    task_id,
                    TaskStatus.PENDING.value,
                ),
            )

            if cursor.rowcount == 0:
                return None

            row = conn.execute(
                f"SELECT * FROM {TASKS_TABLE} WHERE task_id = ?",
                (task_id,),
            ).fetchone()

        return self._row_to_task(row)

    def finish(
        self,
        task_id: int,
        status: TaskStatus,
        next_at: Optional[datetime] = None,
    ) -> StoredTask:
        """
        Record the outcome of a run.

        A recurring task finishing with COMPLETE is re-armed as pending
        until its max_runs is reached. Interval tasks move forward by their
        interval (or to `next_at`); cron tasks need an explicit `next_at`.

        Raises:
            TaskNotFoundError: If the task does not exist
            ValueError: If status is not terminal, or a cron task has no next_at
        """
        status = TaskStatus(status)
        if status not in (TaskStatus.COMPLETE, TaskStatus.FAILED):
            raise ValueError(f"finish() expects complete or failed, got {status.value}")

        task = self.fetch(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        now = _to_iso(_utc_now())
        run_count = task.run_count + 1
        runs_left = task.max_runs is None or run_count < task.max_runs

        if task.is_recurring and status == TaskStatus.COMPLETE and runs_left:
            if next_at is None:
                if isinstance(task.schedule, CronSchedule):
                    raise ValueError("Cron tasks need an explicit next_at to be re-armed")
                next_at = task.scheduled_at + timedelta(seconds=task.schedule.interval_seconds)

            with self._transaction() as conn:
                conn.execute(
                    f"""
                    UPDATE {TASKS_TABLE}
                    SET status = ?, run_count = ?, scheduled_at = ?, started_at = NULL
                    WHERE task_id = ?
                    """,
                    (TaskStatus.PENDING.value, run_count, _to_iso(next_at), task_id),
                )
        else:
            with self._transaction() as conn:
                conn.execute(
                    f"""
                    UPDATE {TASKS_TABLE}
                    SET status = ?, run_count = ?, finished_at = ?
                    WHERE task_id = ?
                    """,
                    (status.value, run_count, now, task_id),
                )

        return self.fetch(task_id)
