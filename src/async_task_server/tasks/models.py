"""Task records and the snapshots handed back to callers."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

TIMEOUT_MESSAGE = "Task timed out"


class TaskStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset({TaskStatus.COMPLETE, TaskStatus.ERROR})


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def new_task_id() -> str:
    return uuid.uuid4().hex


class TaskRecord(BaseModel):
    """One submitted unit of work.

    Records are immutable; writers replace them with `model_copy` so readers
    always see a consistent snapshot.
    """

    model_config = ConfigDict(frozen=True)

    task_id: str
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime
    updated_at: datetime
    deadline_at: datetime | None = None

    result: str | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_expired(self, now: datetime) -> bool:
        return self.deadline_at is not None and now > self.deadline_at

    def to_status(self) -> TaskStatusResponse:
        return TaskStatusResponse(
            status=self.status,
            result=self.result if self.status is TaskStatus.COMPLETE else None,
            error=self.error if self.status is TaskStatus.ERROR else None,
        )


class TaskStatusResponse(BaseModel):
    """What a status query reports: only the fields relevant to the current state."""

    status: TaskStatus
    result: str | None = None
    error: str | None = None

    def to_json(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)


class TaskSubmission(BaseModel):
    """Arguments accepted by a submission, after defaults are applied."""

    input: str
    delay_ms: int = Field(ge=0)
    timeout_ms: int = Field(gt=0)
