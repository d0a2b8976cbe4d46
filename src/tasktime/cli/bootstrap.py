# src/tasktime/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the task store, session registry and engine into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Clock
from ..core.state import AppState
from ..errors import PersistenceError
from ..tasks.task_store import TaskStore
from ..tracking.engine import SessionEngine, TrackingConfig
from ..tracking.registry import SessionRegistry

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_db_path)

    registry = SessionRegistry()
    try:
        registry.rebuild(store)
    except PersistenceError:
        # Registry stays empty; it is corrected lazily as tasks are read.
        logger.exception("Failed to rebuild session registry from %s", settings.tasks_db_path)

    engine = SessionEngine(
        store,
        config=TrackingConfig.from_settings(settings),
        registry=registry,
        clock=clock,
    )

    return AppState(settings=settings, task_store=store, engine=engine)
