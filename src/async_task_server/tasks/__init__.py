"""Asynchronous task lifecycle core.

This package holds the pieces that track submitted work:
- the bounded, lock-guarded task store
- the state machine every record moves through
- the detached executor, the bounded-wait status waiter and the reaper
- the task service facade the adapters call into
"""

from async_task_server.tasks.errors import (
    CapacityExceededError,
    TaskError,
    TaskExecutionError,
    TaskNotFoundError,
    TaskTimedOutError,
)
from async_task_server.tasks.models import TaskRecord, TaskStatus, TaskStatusResponse
from async_task_server.tasks.service import TaskService

__all__ = [
    "CapacityExceededError",
    "TaskError",
    "TaskExecutionError",
    "TaskNotFoundError",
    "TaskRecord",
    "TaskService",
    "TaskStatus",
    "TaskStatusResponse",
    "TaskTimedOutError",
]
