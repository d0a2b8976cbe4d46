# src/tasktime/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ActiveSession:
    """A running tracking session. Lives on its task until stopped."""

    started_at: float
    description: str


@dataclass(frozen=True, slots=True)
class TimeEntry:
    """
    Completed session (immutable history record).

    duration_seconds is never negative: a clock that moved backwards between
    start and stop yields a zero-length entry.
    """

    started_at: float
    stopped_at: float
    description: str
    duration_seconds: float

    @classmethod
    def close(cls, session: ActiveSession, stopped_at: float) -> TimeEntry:
        return cls(
            started_at=session.started_at,
            stopped_at=stopped_at,
            description=session.description,
            duration_seconds=max(0.0, stopped_at - session.started_at),
        )


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    archived: bool = False

    active_session: ActiveSession | None = None
    time_entries: tuple[TimeEntry, ...] = field(default_factory=tuple)

    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def is_tracking(self) -> bool:
        return self.active_session is not None


def total_tracked_seconds(task: Task, *, now_ts: float | None = None) -> float:
    """
    Sum of all completed entries.

    If now_ts is given and the task is tracking, the running session counts too
    (clamped at zero like a stopped one).
    """
    total = sum(e.duration_seconds for e in task.time_entries)
    if now_ts is not None and task.active_session is not None:
        total += max(0.0, now_ts - task.active_session.started_at)
    return total
