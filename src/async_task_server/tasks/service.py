"""Task service facade.

The only entry point the adapters (HTTP, MCP, CLI) call into. It owns the
store and wires the executor, the status waiter and the reaper around it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from types import TracebackType

from async_task_server.config import TaskServerSettings
from async_task_server.tasks.errors import CapacityExceededError, TaskNotFoundError
from async_task_server.tasks.executor import TaskExecutor, TaskWork, reverse_text
from async_task_server.tasks.models import (
    TaskRecord,
    TaskStatusResponse,
    TaskSubmission,
    new_task_id,
    utc_now,
)
from async_task_server.tasks.reaper import Reaper
from async_task_server.tasks.store import TaskStore
from async_task_server.tasks.waiter import StatusWaiter, finalize_timeout

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(
        self,
        *,
        store: TaskStore,
        executor: TaskExecutor,
        waiter: StatusWaiter,
        reaper: Reaper,
        default_delay_ms: int,
        default_timeout_ms: int,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.executor = executor
        self.waiter = waiter
        self.reaper = reaper
        self.default_delay_ms = default_delay_ms
        self.default_timeout_ms = default_timeout_ms
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: TaskServerSettings,
        *,
        work: TaskWork = reverse_text,
        clock: Callable[[], datetime] = utc_now,
    ) -> TaskService:
        store = TaskStore(max_tasks=settings.max_tasks, clock=clock)
        return cls(
            store=store,
            executor=TaskExecutor(store=store, work=work, clock=clock),
            waiter=StatusWaiter(
                store=store,
                poll_interval=settings.poll_interval,
                poll_budget=settings.poll_budget,
                clock=clock,
            ),
            reaper=Reaper(
                store=store,
                completed_retention=settings.completed_retention,
                other_retention=settings.other_retention,
                interval=settings.reaper_interval,
                clock=clock,
            ),
            default_delay_ms=settings.default_delay_ms,
            default_timeout_ms=settings.default_timeout_ms,
            clock=clock,
        )

    def start(self) -> None:
        self.reaper.start()

    def close(self) -> None:
        self.reaper.stop()

    def __enter__(self) -> TaskService:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def task_count(self) -> int:
        return len(self.store)

    def submit(
        self,
        payload: str,
        *,
        delay_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> str:
        """Register a task and start it in the background; return its id at once.

        Raises:
            CapacityExceededError: the store already tracks `max_tasks` records.
            pydantic.ValidationError: negative delay or non-positive timeout.
        """

        submission = TaskSubmission(
            input=payload,
            delay_ms=self.default_delay_ms if delay_ms is None else delay_ms,
            timeout_ms=self.default_timeout_ms if timeout_ms is None else timeout_ms,
        )

        now = self._clock()
        record = TaskRecord(
            task_id=new_task_id(),
            created_at=now,
            updated_at=now,
            deadline_at=now + timedelta(milliseconds=submission.timeout_ms),
        )
        try:
            self.store.insert(record)
        except CapacityExceededError:
            logger.warning("Task rejected; store is full", extra={"max_tasks": self.store.max_tasks})
            raise

        self.executor.start(
            task_id=record.task_id, payload=submission.input, delay_ms=submission.delay_ms
        )
        logger.info(
            "Task submitted",
            extra={
                "task_id": record.task_id,
                "delay_ms": submission.delay_ms,
                "timeout_ms": submission.timeout_ms,
            },
        )
        return record.task_id

    def get(self, task_id: str) -> TaskRecord:
        record = self.store.get(task_id)
        if record is None:
            raise TaskNotFoundError(task_id)
        return record

    def query(self, task_id: str) -> TaskStatusResponse:
        """Report a task's status, waiting (boundedly) for progress if it is still running.

        Raises:
            TaskNotFoundError: the id is unknown or was evicted.
            TaskTimedOutError: the deadline passed; the record is now an error.
        """

        record = self.get(task_id)
        if not record.is_terminal:
            if record.is_expired(self._clock()):
                record = finalize_timeout(self.store, task_id)
            else:
                record = self.waiter.wait(task_id, record.status)
        return record.to_status()
