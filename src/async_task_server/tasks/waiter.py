"""Bounded-wait status queries.

A query that finds its task still running waits for a state change instead of
answering with a stale status at once, but never for longer than the poll
budget. When the budget runs out the current (still non-terminal) record is
returned as a normal answer; the caller simply asks again.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from async_task_server.tasks.errors import TaskNotFoundError, TaskTimedOutError
from async_task_server.tasks.models import TIMEOUT_MESSAGE, TaskRecord, TaskStatus, utc_now
from async_task_server.tasks.store import TaskStore

logger = logging.getLogger(__name__)


def finalize_timeout(store: TaskStore, task_id: str) -> TaskRecord:
    """Mark an overdue task as timed out and raise `TaskTimedOutError`.

    If the executor wrote a terminal state first, that record is returned
    instead; terminal records are never overwritten.
    """

    if store.transition(task_id, TaskStatus.ERROR, error=TIMEOUT_MESSAGE) is not None:
        logger.warning("Task deadline passed; marked as timed out", extra={"task_id": task_id})
        raise TaskTimedOutError(task_id)

    record = store.get(task_id)
    if record is None:
        raise TaskNotFoundError(task_id)
    return record


class StatusWaiter:
    def __init__(
        self,
        *,
        store: TaskStore,
        poll_interval: timedelta,
        poll_budget: timedelta,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._poll_interval = poll_interval.total_seconds()
        self._poll_budget = poll_budget.total_seconds()
        self._clock = clock
        self._monotonic = monotonic

    def wait(self, task_id: str, initial_status: TaskStatus) -> TaskRecord:
        """Wait until the task leaves `initial_status`, turns terminal, or the budget runs out.

        Raises:
            TaskNotFoundError: the record disappeared while waiting.
            TaskTimedOutError: the task's deadline passed while waiting.
        """

        give_up_at = self._monotonic() + self._poll_budget
        while True:
            record = self._store.get(task_id)
            if record is None:
                raise TaskNotFoundError(task_id)

            if not record.is_terminal and record.is_expired(self._clock()):
                return finalize_timeout(self._store, task_id)

            if record.is_terminal or record.status is not initial_status:
                return record

            remaining = give_up_at - self._monotonic()
            if remaining <= 0:
                logger.debug(
                    "Poll budget exhausted; returning current status",
                    extra={"task_id": task_id, "status": record.status.value},
                )
                return record

            # Wakes early when this task is written; otherwise re-checks once per tick.
            self._store.wait_for_change(task_id, record, min(self._poll_interval, remaining))
