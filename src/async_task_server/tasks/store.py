"""Bounded in-memory task registry.

Executors, status waiters and the reaper all touch the store from their own
threads, so every access goes through a single lock. Records are immutable
and replaced on every write, so a waiter detects a change by identity.
Waiters sleep on a per-task condition; a write only wakes the waiters of the
task it touched.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime

from async_task_server.tasks.errors import CapacityExceededError
from async_task_server.tasks.models import TaskRecord, TaskStatus, utc_now
from async_task_server.tasks.state_machine import transition


class TaskStore:
    def __init__(
        self, *, max_tasks: int, clock: Callable[[], datetime] = utc_now
    ) -> None:
        self.max_tasks = max_tasks
        self._clock = clock
        self._records: dict[str, TaskRecord] = {}
        self._lock = threading.Lock()
        # Conditions share `_lock`; they exist only while someone waits on the task.
        self._conditions: dict[str, threading.Condition] = {}
        self._waiting: dict[str, int] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _changed_unlocked(self, task_id: str) -> None:
        cond = self._conditions.get(task_id)
        if cond is not None:
            cond.notify_all()

    def insert(self, record: TaskRecord) -> None:
        """Add a new record; refuse it once the population bound is reached."""

        with self._lock:
            if len(self._records) >= self.max_tasks:
                raise CapacityExceededError(self.max_tasks)
            if record.task_id in self._records:
                raise ValueError(f"Task with ID {record.task_id} already exists")
            self._records[record.task_id] = record
            self._changed_unlocked(record.task_id)

    def get(self, task_id: str) -> TaskRecord | None:
        with self._lock:
            return self._records.get(task_id)

    def put(self, record: TaskRecord) -> None:
        """Overwrite a record unconditionally (last write wins)."""

        with self._lock:
            self._records[record.task_id] = record
            self._changed_unlocked(record.task_id)

    def transition(
        self,
        task_id: str,
        to: TaskStatus,
        *,
        result: str | None = None,
        error: str | None = None,
    ) -> TaskRecord | None:
        """Move a non-terminal record to `to` atomically.

        Returns the new record, or `None` when the record is missing or already
        terminal. A terminal record is never overwritten.
        """

        with self._lock:
            current = self._records.get(task_id)
            if current is None or current.is_terminal:
                return None
            updated = transition(
                current=current, to=to, now=self._clock(), result=result, error=error
            )
            self._records[task_id] = updated
            self._changed_unlocked(task_id)
            return updated

    def delete(self, task_id: str) -> bool:
        with self._lock:
            if self._records.pop(task_id, None) is None:
                return False
            self._changed_unlocked(task_id)
            return True

    def delete_if_unchanged(self, record: TaskRecord) -> bool:
        """Delete `record` only if it is still the stored version."""

        with self._lock:
            if self._records.get(record.task_id) is not record:
                return False
            del self._records[record.task_id]
            self._changed_unlocked(record.task_id)
            return True

    def snapshot(self) -> list[TaskRecord]:
        """Return every record as of now, for sweeps."""

        with self._lock:
            return list(self._records.values())

    def for_each(self, fn: Callable[[TaskRecord], None]) -> None:
        """Call `fn` for every record in a snapshot; `fn` runs without the lock held."""

        for record in self.snapshot():
            fn(record)

    def wait_for_change(self, task_id: str, seen: TaskRecord | None, timeout: float) -> bool:
        """Block until the stored record for `task_id` is no longer `seen`, or `timeout` seconds pass.

        Only writes to `task_id` wake the caller.
        """

        with self._lock:
            cond = self._conditions.get(task_id)
            if cond is None:
                cond = self._conditions[task_id] = threading.Condition(self._lock)
            self._waiting[task_id] = self._waiting.get(task_id, 0) + 1
            try:
                return cond.wait_for(
                    lambda: self._records.get(task_id) is not seen, timeout=timeout
                )
            finally:
                self._waiting[task_id] -= 1
                if not self._waiting[task_id]:
                    del self._waiting[task_id]
                    del self._conditions[task_id]

    def waiter_count(self, task_id: str) -> int:
        with self._lock:
            return self._waiting.get(task_id, 0)
