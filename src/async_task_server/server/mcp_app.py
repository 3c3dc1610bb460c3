"""MCP tool server over the task service.

Two tools mirror the HTTP endpoints: `submit_task` and `check_task_status`.
Tool arguments keep the camelCase wire names (`delayMs`, `timeoutMs`,
`taskId`) that clients send. Both return JSON text. The service blocks (a
status query may wait up to the poll budget), so tool calls run in a worker
thread.
"""

from __future__ import annotations

import functools
import json

import anyio.to_thread
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import ValidationError

from async_task_server.tasks.errors import TaskError
from async_task_server.tasks.service import TaskService

SERVER_NAME = "async-task-server"


def handle_submit_task(
    service: TaskService,
    payload: str,
    delay_ms: int | None = None,
    timeout_ms: int | None = None,
) -> str:
    try:
        task_id = service.submit(payload, delay_ms=delay_ms, timeout_ms=timeout_ms)
    except TaskError as e:
        raise ToolError(str(e)) from e
    except ValidationError as e:
        raise ToolError(f"Invalid submit_task arguments: {e}") from e
    return json.dumps({"taskId": task_id})


def handle_check_task_status(service: TaskService, task_id: str) -> str:
    try:
        snapshot = service.query(task_id)
    except TaskError as e:
        raise ToolError(str(e)) from e
    return json.dumps(snapshot.to_json())


def create_mcp_server(service: TaskService, *, name: str = SERVER_NAME) -> FastMCP:
    mcp = FastMCP(name)

    @mcp.tool()
    async def submit_task(
        input: str,  # noqa: A002
        delayMs: int | None = None,  # noqa: N803
        timeoutMs: int | None = None,  # noqa: N803
    ) -> str:
        """Start processing a task asynchronously and return its task id.

        Args:
            input: The input to process
            delayMs: Optional delay in milliseconds to simulate processing time
            timeoutMs: Optional timeout in milliseconds
        """
        return await anyio.to_thread.run_sync(
            functools.partial(handle_submit_task, service, input, delayMs, timeoutMs)
        )

    @mcp.tool()
    async def check_task_status(taskId: str) -> str:  # noqa: N803
        """Check the status of an async task.

        Waits briefly for progress if the task is still running.

        Args:
            taskId: The task id returned by submit_task
        """
        return await anyio.to_thread.run_sync(
            functools.partial(handle_check_task_status, service, taskId)
        )

    return mcp
