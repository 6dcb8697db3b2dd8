"""
Tasks router.

Thin HTTP surface over DedupScheduler. Endpoints are plain (sync) functions
because every scheduler call blocks on the job store; FastAPI runs them in
its threadpool.

SchedulerError kinds map to status codes:
- invalid_name / invalid_delay / invalid_interval -> 422
- task_not_found -> 404
- cancel_failed / delete_failed -> 409
- store_unavailable -> 503
- schedule_failed / store_error -> 500
"""

from typing import List

from fastapi import APIRouter, HTTPException, Query

from src.scheduler import ErrorKind, SchedulerError, TaskRequest
from ..schemas.tasks import (
    TaskScheduleRequest,
    RecurringTaskScheduleRequest,
    TaskScheduleResponse,
    TaskInfo,
    TaskListResponse,
    TaskStatusResponse,
    TaskActionResponse,
    GroupClearResponse,
    TaskExistsResponse,
    TaskCountResponse,
    InitializationStatusResponse,
    StatusLiteral,
)
from .._scheduler_state import get_dedup_scheduler


router = APIRouter()

ERROR_STATUS_CODES = {
    ErrorKind.INVALID_NAME: 422,
    ErrorKind.INVALID_DELAY: 422,
    ErrorKind.INVALID_INTERVAL: 422,
    ErrorKind.TASK_NOT_FOUND: 404,
    ErrorKind.CANCEL_FAILED: 409,
    ErrorKind.DELETE_FAILED: 409,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.SCHEDULE_FAILED: 500,
    ErrorKind.STORE_ERROR: 500,
}


def _http_error(error: SchedulerError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS_CODES.get(error.kind, 500),
        detail={"error": error.kind.value, "message": error.message},
    )


def _task_list(tasks: list[dict]) -> TaskListResponse:
    return TaskListResponse(tasks=[TaskInfo(**t) for t in tasks], total=len(tasks))


# =============================================================================
# Scheduling
# =============================================================================


@router.post("", response_model=TaskScheduleResponse)
def schedule_task(request: TaskScheduleRequest):
    """
    Schedule a one-shot task.

    With `unique` other than "none", an equivalent live one-shot task is
    reused and its handle returned instead of creating a new task.
    """
    scheduler = get_dedup_scheduler()

    try:
        task_id = scheduler.schedule(
            TaskRequest(
                name=request.name,
                delay=request.delay,
                payload=request.payload,
                group=request.group,
                priority=request.priority,
                unique=request.unique,
            )
        )
    except SchedulerError as e:
        raise _http_error(e)

    return TaskScheduleResponse(task_id=task_id, name=scheduler.full_name(request.name))


@router.post("/recurring", response_model=TaskScheduleResponse)
def schedule_recurring_task(request: RecurringTaskScheduleRequest):
    """Schedule a recurring task (deduplicated against recurring tasks only)."""
    scheduler = get_dedup_scheduler()

    try:
        task_id = scheduler.schedule(
            TaskRequest(
                name=request.name,
                delay=request.delay,
                interval=request.interval,
                payload=request.payload,
                group=request.group,
                priority=request.priority,
                max_runs=request.max_runs,
                unique=request.unique,
            )
        )
    except SchedulerError as e:
        raise _http_error(e)

    return TaskScheduleResponse(task_id=task_id, name=scheduler.full_name(request.name))


# =============================================================================
# Queries (static paths before /{task_id})
# =============================================================================


@router.get("", response_model=TaskListResponse)
def list_tasks_by_name(
    name: str = Query(..., description="Task name"),
    group: str = Query(default="", description="Group filter (empty = any group)"),
    status: List[StatusLiteral] = Query(default=["pending"]),
):
    """List tasks with the given name."""
    try:
        tasks = get_dedup_scheduler().get_tasks_by_name(name, group=group, status=status)
    except SchedulerError as e:
        raise _http_error(e)

    return _task_list(tasks)


@router.get("/store/status", response_model=InitializationStatusResponse)
def store_status():
    """Job store readiness report."""
    return InitializationStatusResponse(**get_dedup_scheduler().get_initialization_status())


@router.get("/exists", response_model=TaskExistsResponse)
def task_exists(
    name: str = Query(...),
    group: str = Query(default=""),
    status: List[StatusLiteral] = Query(default=["pending"]),
    recurring: bool = Query(default=False, description="Only count recurring tasks"),
):
    """Whether a task with the given name is scheduled. Never fails: unknown reads as absent."""
    scheduler = get_dedup_scheduler()
    if recurring:
        exists = scheduler.has_scheduled_recurring_task(name, group=group, status=status)
    else:
        exists = scheduler.has_scheduled_task(name, group=group, status=status)

    return TaskExistsResponse(name=scheduler.full_name(name), exists=exists)


@router.get("/count", response_model=TaskCountResponse)
def task_count(
    name: str = Query(...),
    group: str = Query(default=""),
    status: List[StatusLiteral] = Query(default=["pending"]),
):
    scheduler = get_dedup_scheduler()
    count = scheduler.get_task_count(name, group=group, status=status)
    return TaskCountResponse(name=scheduler.full_name(name), count=count)


@router.get("/groups/{group}", response_model=TaskListResponse)
def list_tasks_by_group(
    group: str,
    status: List[StatusLiteral] = Query(default=["pending"]),
    limit: int = Query(default=50, ge=1, le=1000),
):
    try:
        tasks = get_dedup_scheduler().get_tasks_by_group(group, status=status, limit=limit)
    except SchedulerError as e:
        raise _http_error(e)

    return _task_list(tasks)


@router.delete("/groups/{group}", response_model=GroupClearResponse)
def clear_group(group: str):
    """Cancel all pending tasks in a group."""
    try:
        cleared = get_dedup_scheduler().clear_group_tasks(group)
    except SchedulerError as e:
        raise _http_error(e)

    return GroupClearResponse(group=group, cleared=cleared)


# =============================================================================
# Single task
# =============================================================================


@router.get("/{task_id}", response_model=TaskStatusResponse)
def get_task_status(task_id: int):
    try:
        status = get_dedup_scheduler().get_task_status(task_id)
    except SchedulerError as e:
        raise _http_error(e)

    return TaskStatusResponse(task_id=task_id, status=status.value)


@router.post("/{task_id}/cancel", response_model=TaskActionResponse)
def cancel_task(task_id: int):
    """Cancel a pending task."""
    try:
        get_dedup_scheduler().cancel_task(task_id)
    except SchedulerError as e:
        raise _http_error(e)

    return TaskActionResponse(task_id=task_id, success=True, message="Task cancelled")


@router.delete("/{task_id}", response_model=TaskActionResponse)
def delete_task(task_id: int):
    try:
        get_dedup_scheduler().delete_task(task_id)
    except SchedulerError as e:
        raise _http_error(e)

    return TaskActionResponse(task_id=task_id, success=True, message="Task deleted")

