"""
API Schemas package.

Pydantic models for request/response validation.
"""

from .tasks import (
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
)

__all__ = [
    "TaskScheduleRequest",
    "RecurringTaskScheduleRequest",
    "TaskScheduleResponse",
    "TaskInfo",
    "TaskListResponse",
    "TaskStatusResponse",
    "TaskActionResponse",
    "GroupClearResponse",
    "TaskExistsResponse",
    "TaskCountResponse",
    "InitializationStatusResponse",
]
