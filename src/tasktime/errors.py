# src/tasktime/errors.py

"""
Errors raised by the tracking engine and the task store.

Every error here is recoverable: the presentation boundary (tracking/api.py)
turns them into user-facing notices and the state is left unchanged.
"""

from __future__ import annotations

from .tasks.task_models import ActiveSession


class TimeTrackingError(Exception):
    """Base class for all tracking errors."""


class NoTaskSelectedError(TimeTrackingError):
    def __init__(self, message: str = "No task selected.") -> None:
        super().__init__(message)


class AlreadyTrackingError(TimeTrackingError):
    def __init__(self, task_id: str, session: ActiveSession) -> None:
        super().__init__(f"Time tracking is already active for task {task_id}.")
        self.task_id = task_id
        self.session = session


class NoActiveSessionError(TimeTrackingError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"No active time tracking session for task {task_id}.")
        self.task_id = task_id


class PersistenceError(TimeTrackingError):
    """The task store could not be read or written."""


def friendly_error_message(err: Exception) -> str:
    if isinstance(err, NoTaskSelectedError):
        return "Please select a task."
    if isinstance(err, AlreadyTrackingError):
        return (
            f"Time tracking is already active for this task "
            f"({err.session.description!r}). Stop it first with /stop."
        )
    if isinstance(err, NoActiveSessionError):
        return "Time tracking is not active for this task."
    if isinstance(err, PersistenceError):
        return "Failed to save time tracking data. Please try again."
    msg = str(err).strip()
    return msg or "Time tracking error."
