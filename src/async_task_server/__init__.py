"""Async Task Server.

Submit a unit of work, get a task id back immediately, and poll for the
outcome with bounded-wait status queries:
- an in-memory, bounded task registry
- detached background execution per task
- deadline enforcement and periodic eviction of stale records
"""

__version__ = "0.1.0"

from async_task_server.config import TaskServerSettings

__all__ = ["__version__", "TaskServerSettings"]
