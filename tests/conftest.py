# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasktime.core.state import AppState
from tasktime.tasks.task_store import TaskStore
from tasktime.tracking.engine import SessionEngine, TrackingConfig
from tasktime.tracking.registry import SessionRegistry

from .fakes import FixedClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasktime-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        default_description="Working",
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(1000.0)


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, clock: FixedClock) -> AppState:
    """
    AppState wired with a fixed clock.

    NOTE: We keep the real SQLite TaskStore here because its atomic save
    is part of what we want to test.
    """
    engine = SessionEngine(
        store,
        config=TrackingConfig.from_settings(settings),
        registry=SessionRegistry(),
        clock=clock,
    )
    return AppState(settings=settings, task_store=store, engine=engine)
