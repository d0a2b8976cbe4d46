# src/tasktime/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the tracking core.

The engine depends on Protocols instead of concrete implementations.
This keeps storage swappable and lets tests supply fixed clocks and in-memory stores.
"""

import time
from typing import Protocol

from ..tasks.task_models import ActiveSession, Task, TimeEntry


class Clock(Protocol):
    """Single time source for every timestamp the engine captures."""

    def now(self) -> float: ...


class SystemClock:
    def now(self) -> float:
        return time.time()


class TaskRepo(Protocol):
    # Engine API
    def get_task(self, task_id: str) -> Task | None: ...

    def save_task(self, task: Task) -> None:
        """Persist active_session and time_entries together (all or nothing)."""
        ...

    # Conditional writes used by the engine (False = lost a race, nothing written)
    def claim_session(self, task_id: str, session: ActiveSession) -> bool: ...
    def close_session(self, task_id: str, entry: TimeEntry) -> bool: ...

    # Registry rebuild
    def list_active_task_ids(self) -> list[str]: ...

    # Selection / console
    def list_tasks(self, *, include_archived: bool = False) -> list[Task]: ...
    def add_task(self, *, title: str, task_id: str | None = None) -> Task: ...
    def set_archived(self, task_id: str, archived: bool = True) -> None: ...
    def count_tasks(self) -> int: ...
