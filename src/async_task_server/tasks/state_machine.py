"""Explicit task state machine.

`pending -> processing -> {complete, error}`; a pending task may also be
finalized as `error` by a status query that sees its deadline pass.
Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from datetime import datetime

from async_task_server.tasks.models import TaskRecord, TaskStatus

ALLOWED_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.PROCESSING, TaskStatus.ERROR},
    TaskStatus.PROCESSING: {TaskStatus.COMPLETE, TaskStatus.ERROR},
    TaskStatus.COMPLETE: set(),
    TaskStatus.ERROR: set(),
}


class IllegalTransitionError(ValueError):
    pass


def transition(
    *,
    current: TaskRecord,
    to: TaskStatus,
    now: datetime,
    result: str | None = None,
    error: str | None = None,
) -> TaskRecord:
    """Return the record moved to `to`, stamped with `now`.

    Exactly one of `result`/`error` must accompany a terminal status, and
    neither may accompany a non-terminal one.
    """

    allowed = ALLOWED_TRANSITIONS.get(current.status, set())
    if to not in allowed:
        raise IllegalTransitionError(
            f"Illegal transition: {current.status.value} -> {to.value}"
        )
    if to is TaskStatus.COMPLETE and (result is None or error is not None):
        raise IllegalTransitionError("A complete task carries a result and no error")
    if to is TaskStatus.ERROR and (error is None or result is not None):
        raise IllegalTransitionError("An errored task carries an error and no result")
    if not to.is_terminal and (result is not None or error is not None):
        raise IllegalTransitionError(f"A {to.value} task carries neither result nor error")

    return current.model_copy(
        update={"status": to, "result": result, "error": error, "updated_at": now}
    )
