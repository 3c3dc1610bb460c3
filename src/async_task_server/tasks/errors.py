"""Errors surfaced by the task lifecycle core."""

from __future__ import annotations


class TaskError(Exception):
    """Base class for task-related errors."""

    code = "TASK_ERROR"


class CapacityExceededError(TaskError):
    """Raised when a submission arrives while the store is full."""

    code = "TASK_CAPACITY_EXCEEDED"

    def __init__(self, max_tasks: int) -> None:
        super().__init__(f"Maximum number of active tasks reached ({max_tasks})")
        self.max_tasks = max_tasks


class TaskNotFoundError(TaskError, KeyError):
    """Raised when a task id is unknown or its record has been evicted."""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"No task found with ID: {task_id}")
        self.task_id = task_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class TaskTimedOutError(TaskError):
    """Raised by a status query that observes an expired deadline."""

    code = "TASK_TIMEOUT"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} timed out")
        self.task_id = task_id


class TaskExecutionError(TaskError):
    """Raised by work functions to report a failure with a readable message.

    Executors capture it (like any other exception) into the record's error field.
    """

    code = "TASK_EXECUTION_FAILED"
