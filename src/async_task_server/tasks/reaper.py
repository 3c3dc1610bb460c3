"""Periodic eviction of task records nobody needs anymore.

Age is measured from a record's last write, not from its last read.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from async_task_server.tasks.models import TaskRecord, TaskStatus, utc_now
from async_task_server.tasks.store import TaskStore

logger = logging.getLogger(__name__)


class Reaper:
    def __init__(
        self,
        *,
        store: TaskStore,
        completed_retention: timedelta,
        other_retention: timedelta,
        interval: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self.completed_retention = completed_retention
        self.other_retention = other_retention
        self.interval = interval
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def retention_for(self, record: TaskRecord) -> timedelta:
        if record.status is TaskStatus.COMPLETE:
            return self.completed_retention
        return self.other_retention

    def sweep(self) -> int:
        """Delete every record older than its retention; return how many were deleted."""

        now = self._clock()
        evicted = 0
        for record in self._store.snapshot():
            if now - record.updated_at <= self.retention_for(record):
                continue
            # A record rewritten since the snapshot has a fresh age; leave it.
            if self._store.delete_if_unchanged(record):
                evicted += 1

        if evicted:
            logger.info(
                "Evicted expired tasks",
                extra={"evicted": evicted, "remaining": len(self._store)},
            )
        return evicted

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="task-reaper", daemon=True)
        self._thread.start()
        logger.info(
            "Reaper started", extra={"interval_seconds": self.interval.total_seconds()}
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
            logger.info("Reaper stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval.total_seconds()):
            try:
                self.sweep()
            except Exception:
                logger.exception("Reaper sweep failed")
