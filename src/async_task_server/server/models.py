"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from async_task_server.tasks.models import TaskStatus


class SubmitTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input: str
    delay_ms: int | None = Field(default=None, ge=0, alias="delayMs")
    timeout_ms: int | None = Field(default=None, gt=0, alias="timeoutMs")


class SubmitTaskResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(alias="taskId")


class TaskStatusBody(BaseModel):
    status: TaskStatus
    result: str | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
    tasks: int
