# src/tasktime/tasks/task_api.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.ports import TaskRepo
from .task_models import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FocusContext:
    """Whatever the user is currently looking at (the "focused" task), if anything."""

    task_id: str | None = None


TaskRef = Task | str | FocusContext | None


def resolve_task(store: TaskRepo, ref: TaskRef) -> Task | None:
    """
    Resolve a task reference to the stored Task record.

    Accepts a Task (re-read, the given copy may be stale), a task id, or a FocusContext.
    Unknown ids resolve to None.
    """
    if ref is None:
        return None

    if isinstance(ref, Task):
        task_id: str | None = ref.id
    elif isinstance(ref, FocusContext):
        task_id = ref.task_id
    else:
        task_id = str(ref).strip()

    if not task_id:
        return None

    task = store.get_task(task_id)
    if task is None:
        logger.debug("resolve_task: unknown task_id=%s", task_id)
    return task


def list_selectable_tasks(store: TaskRepo) -> list[Task]:
    """Tasks offered in the task picker: archived ones are excluded."""
    return [t for t in store.list_tasks(include_archived=False) if not t.archived]
