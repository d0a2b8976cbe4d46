# tests/fakes.py

from __future__ import annotations

from dataclasses import replace

from tasktime.errors import PersistenceError
from tasktime.tasks.task_models import ActiveSession, Task, TimeEntry


class FixedClock:
    """
    Deterministic clock for engine tests.

    - now() returns the current fixed value
    - set() / advance() move it explicitly (including backwards)
    """

    def __init__(self, now: float = 1000.0) -> None:
        self._now = float(now)

    def now(self) -> float:
        return self._now

    def set(self, now: float) -> None:
        self._now = float(now)

    def advance(self, seconds: float) -> None:
        self._now += float(seconds)


class FakeTaskRepo:
    """
    In-memory TaskRepo.

    Stores immutable Task records, so out-of-band edits are made with put().
    Counts saves for assertions.
    """

    def __init__(self, tasks: list[Task] | None = None) -> None:
        self.tasks: dict[str, Task] = {t.id: t for t in (tasks or [])}
        self.saves = 0

    def put(self, task: Task) -> None:
        self.tasks[task.id] = task

    def get_task(self, task_id: str) -> Task | None:
        return self.tasks.get(task_id)

    def save_task(self, task: Task) -> None:
        if task.id not in self.tasks:
            raise PersistenceError(f"Task not found in store: {task.id}")
        self.saves += 1
        self.tasks[task.id] = task

    def claim_session(self, task_id: str, session: ActiveSession) -> bool:
        task = self.tasks[task_id]
        if task.active_session is not None:
            return False
        self.saves += 1
        self.tasks[task_id] = replace(task, active_session=session)
        return True

    def close_session(self, task_id: str, entry: TimeEntry) -> bool:
        task = self.tasks[task_id]
        if task.active_session is None or task.active_session.started_at != entry.started_at:
            return False
        self.saves += 1
        self.tasks[task_id] = replace(task, active_session=None, time_entries=(*task.time_entries, entry))
        return True

    def list_active_task_ids(self) -> list[str]:
        return [t.id for t in self.tasks.values() if t.active_session is not None]

    def list_tasks(self, *, include_archived: bool = False) -> list[Task]:
        return [t for t in self.tasks.values() if include_archived or not t.archived]

    def add_task(self, *, title: str, task_id: str | None = None) -> Task:
        task = Task(id=task_id or f"t{len(self.tasks) + 1}", title=title)
        self.tasks[task.id] = task
        return task

    def set_archived(self, task_id: str, archived: bool = True) -> None:
        self.tasks[task_id] = replace(self.tasks[task_id], archived=archived)

    def count_tasks(self) -> int:
        return len(self.tasks)


class FailingSaveRepo(FakeTaskRepo):
    """Reads work, every tracking write fails like an unavailable disk."""

    def save_task(self, task: Task) -> None:
        raise PersistenceError("disk unavailable")

    def claim_session(self, task_id: str, session: ActiveSession) -> bool:
        raise PersistenceError("disk unavailable")

    def close_session(self, task_id: str, entry: TimeEntry) -> bool:
        raise PersistenceError("disk unavailable")


class BrokenRepo(FakeTaskRepo):
    """Raises a non-tracking error from the store layer."""

    def claim_session(self, task_id: str, session: ActiveSession) -> bool:
        raise OSError("I/O error")
