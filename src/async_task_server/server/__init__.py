"""Adapters exposing the task service to callers.

Design intent:
- Keep task lifecycle logic in `async_task_server.tasks.*`
- Keep transport concerns (routing, error mapping, tool schemas) here
"""

from __future__ import annotations

__all__ = ["create_app", "create_mcp_server"]

from async_task_server.server.app import create_app
from async_task_server.server.mcp_app import create_mcp_server
