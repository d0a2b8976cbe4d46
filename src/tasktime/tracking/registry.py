# src/tasktime/tracking/registry.py

from __future__ import annotations

import logging

from ..core.ports import TaskRepo
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    In-memory index of tasks that are currently tracking.

    This is a cache, not a source of truth:
    - the engine reports successful starts/stops (after they are persisted)
    - any fresh Task read from the store is fed to reconcile(); the stored state wins
    - rebuild() repopulates the whole index from the store (startup)
    """

    def __init__(self) -> None:
        self._active: set[str] = set()

    def on_session_started(self, task_id: str) -> None:
        self._active.add(task_id)

    def on_session_stopped(self, task_id: str) -> None:
        self._active.discard(task_id)

    def is_active(self, task_id: str | None) -> bool:
        if not task_id:
            return False
        return task_id in self._active

    def active_task_ids(self) -> list[str]:
        return sorted(self._active)

    def reconcile(self, task: Task | None) -> None:
        """Correct the cached answer for one task from a freshly read record."""
        if task is None:
            return
        cached = task.id in self._active
        stored = task.active_session is not None
        if cached == stored:
            return
        logger.debug("Registry out of sync task_id=%s cached=%s stored=%s", task.id, cached, stored)
        if stored:
            self._active.add(task.id)
        else:
            self._active.discard(task.id)

    def forget(self, task_id: str) -> None:
        """Drop a task the store no longer knows about."""
        if task_id in self._active:
            logger.debug("Registry dropping unknown task_id=%s", task_id)
            self._active.discard(task_id)

    def rebuild(self, store: TaskRepo) -> None:
        ids = store.list_active_task_ids()
        self._active = set(ids)
        logger.info("Session registry rebuilt: %d active", len(self._active))
