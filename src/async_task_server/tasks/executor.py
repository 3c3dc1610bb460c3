"""Background execution of submitted tasks.

Each task runs on its own daemon thread. The submitter discards the thread
handle; the thread always ends by attempting exactly one terminal write.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime

from async_task_server.tasks.errors import TaskExecutionError
from async_task_server.tasks.models import TIMEOUT_MESSAGE, TaskStatus, utc_now
from async_task_server.tasks.store import TaskStore

logger = logging.getLogger(__name__)

TaskWork = Callable[[str], str]


def reverse_text(value: str) -> str:
    """Example work: reverse the input."""

    return value[::-1]


class TaskExecutor:
    def __init__(
        self,
        *,
        store: TaskStore,
        work: TaskWork = reverse_text,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._work = work
        self._clock = clock
        self._sleep = sleep

    def start(self, *, task_id: str, payload: str, delay_ms: int) -> threading.Thread:
        thread = threading.Thread(
            target=self.run,
            name=f"task-{task_id}",
            daemon=True,
            kwargs={"task_id": task_id, "payload": payload, "delay_ms": delay_ms},
        )
        thread.start()
        return thread

    def run(self, *, task_id: str, payload: str, delay_ms: int) -> None:
        """Execute one task to a terminal state. Never raises."""

        processing = self._store.transition(task_id, TaskStatus.PROCESSING)
        if processing is None:
            logger.info("Task is no longer pending; skipping execution", extra={"task_id": task_id})
            return

        logger.debug("Task processing", extra={"task_id": task_id, "delay_ms": delay_ms})
        try:
            if delay_ms > 0:
                self._sleep(delay_ms / 1000)
            result = self._work(payload)
            if not isinstance(result, str):
                raise TaskExecutionError(
                    f"Task work returned {type(result).__name__}, expected str"
                )
        except Exception as e:
            logger.exception("Task failed", extra={"task_id": task_id})
            self._finish(task_id, TaskStatus.ERROR, error=str(e) or type(e).__name__)
            return

        if processing.is_expired(self._clock()):
            logger.warning("Task finished after its deadline", extra={"task_id": task_id})
            self._finish(task_id, TaskStatus.ERROR, error=TIMEOUT_MESSAGE)
            return

        self._finish(task_id, TaskStatus.COMPLETE, result=result)

    def _finish(
        self,
        task_id: str,
        status: TaskStatus,
        *,
        result: str | None = None,
        error: str | None = None,
    ) -> None:
        record = self._store.transition(task_id, status, result=result, error=error)
        if record is None:
            logger.info(
                "Task already finalized or evicted; discarding late write",
                extra={"task_id": task_id, "status": status.value},
            )
            return
        logger.info("Task finished", extra={"task_id": task_id, "status": status.value})
