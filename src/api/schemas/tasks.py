"""
Task scheduling API schemas.

Request/response models for the /tasks endpoints.
"""

from typing import Any, List, Literal, Optional
from pydantic import BaseModel, Field


UniqueLiteral = Literal["none", "hook", "group", "args"]
StatusLiteral = Literal["pending", "in-progress", "complete", "failed", "canceled"]


# =============================================================================
# Scheduling
# =============================================================================


class TaskScheduleRequest(BaseModel):
    """Request to schedule a one-shot task."""

    name: str = Field(..., description="Task name (the configured prefix is applied)")
    delay: int = Field(default=0, description="Seconds before the first run")
    payload: Any = Field(
        default_factory=list,
        description="Task arguments (list or object), passed through to the job store"
    )
    group: str = Field(default="", description="Task group (empty = configured default group)")
    priority: Optional[int] = Field(default=None, description="Priority (default 10)")
    unique: UniqueLiteral = Field(
        default="none",
        description="Duplicate scope: none | hook (name) | group (name+group) | args (name+group+payload)"
    )


class RecurringTaskScheduleRequest(TaskScheduleRequest):
    """Request to schedule a recurring task."""

    interval: int = Field(..., description="Seconds between runs (must be > 0)")
    max_runs: Optional[int] = Field(default=None, description="Run limit (null = unlimited)")


class TaskScheduleResponse(BaseModel):
    """Handle of the scheduled (or already existing) task."""

    task_id: int = Field(..., description="Job store task handle")
    name: str = Field(..., description="Fully-qualified task name")


# =============================================================================
# Queries
# =============================================================================


class TaskInfo(BaseModel):
    """A task as listed by the job store."""

    id: int
    name: str
    args: Any = None
    group: str
    status: str
    schedule: str = Field(..., description="Schedule kind: single | interval | cron")
    recurring: bool = False
    next_run: Optional[int] = Field(default=None, description="Next run (unix timestamp), pending only")


class TaskListResponse(BaseModel):
    tasks: List[TaskInfo] = Field(default_factory=list)
    total: int = Field(..., description="Number of tasks returned")


class TaskStatusResponse(BaseModel):
    task_id: int
    status: str


class TaskActionResponse(BaseModel):
    """Response from cancel/delete."""

    task_id: int
    success: bool
    message: Optional[str] = None


class GroupClearResponse(BaseModel):
    group: str
    cleared: int = Field(..., description="Number of pending tasks cancelled")


class TaskExistsResponse(BaseModel):
    name: str
    exists: bool


class TaskCountResponse(BaseModel):
    name: str
    count: int


class InitializationStatusResponse(BaseModel):
    store_loaded: bool
    store_initialized: bool
    tables_exist: bool
    ready: bool
    errors: List[str] = Field(default_factory=list)
