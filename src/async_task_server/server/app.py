"""FastAPI app factory.

Endpoints are intentionally thin wrappers over the task service. Handlers are
plain `def` functions, so FastAPI runs the bounded status wait in its thread
pool instead of on the event loop.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from async_task_server import __version__
from async_task_server.config import TaskServerSettings
from async_task_server.server.models import (
    HealthResponse,
    SubmitTaskRequest,
    SubmitTaskResponse,
    TaskStatusBody,
)
from async_task_server.tasks.errors import (
    CapacityExceededError,
    TaskError,
    TaskNotFoundError,
    TaskTimedOutError,
)
from async_task_server.tasks.service import TaskService

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[TaskError], int] = {
    CapacityExceededError: status.HTTP_503_SERVICE_UNAVAILABLE,
    TaskNotFoundError: status.HTTP_404_NOT_FOUND,
    TaskTimedOutError: status.HTTP_408_REQUEST_TIMEOUT,
}


def _status_for(exc: TaskError) -> int:
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def create_app(
    settings: TaskServerSettings | None = None, service: TaskService | None = None
) -> FastAPI:
    settings = settings or TaskServerSettings()
    service = service or TaskService.from_settings(settings)

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        service.start()
        try:
            yield
        finally:
            service.close()

    app = FastAPI(
        title="Async Task Server",
        version=__version__,
        description="Submit work, receive a task id, and poll for the outcome.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # Expose settings and the service for request handlers that want to read them.
    app.state.settings = settings
    app.state.service = service

    @app.exception_handler(TaskError)
    async def task_error_handler(_request: Request, exc: TaskError) -> JSONResponse:
        logger.info("Task request failed", extra={"code": exc.code, "detail": str(exc)})
        return JSONResponse(
            status_code=_status_for(exc),
            content={"detail": str(exc), "code": exc.code},
        )

    @app.get("/api/v1/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__, tasks=service.task_count)

    @app.post(
        "/api/v1/tasks",
        response_model=SubmitTaskResponse,
        status_code=status.HTTP_201_CREATED,
    )
    def submit_task(req: SubmitTaskRequest) -> SubmitTaskResponse:
        task_id = service.submit(req.input, delay_ms=req.delay_ms, timeout_ms=req.timeout_ms)
        return SubmitTaskResponse(task_id=task_id)

    @app.get(
        "/api/v1/tasks/{task_id}",
        response_model=TaskStatusBody,
        response_model_exclude_none=True,
    )
    def check_task_status(task_id: str) -> TaskStatusBody:
        snapshot = service.query(task_id)
        return TaskStatusBody.model_validate(snapshot.model_dump())

    return app
