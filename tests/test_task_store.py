# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from dataclasses import replace
from pathlib import Path

import pytest

from tasktime.errors import PersistenceError
from tasktime.tasks.task_api import FocusContext, list_selectable_tasks, resolve_task
from tasktime.tasks.task_models import ActiveSession, Task, TimeEntry, total_tracked_seconds
from tasktime.tasks.task_store import TaskStore


def test_add_get_and_list(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")

    a = store.add_task(title="  Write report ", task_id="T1")
    b = store.add_task(title="Review")
    assert a.id == "T1"
    assert a.title == "Write report"
    assert b.id
    assert store.count_tasks() == 2

    got = store.get_task("T1")
    assert got is not None
    assert got.title == "Write report"
    assert got.active_session is None
    assert got.time_entries == ()
    assert store.get_task("nope") is None
    assert store.get_task("") is None

    with pytest.raises(ValueError):
        store.add_task(title="dup", task_id="T1")
    with pytest.raises(ValueError):
        store.add_task(title="   ")


def test_archived_tasks_are_not_selectable(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.add_task(title="keep", task_id="a")
    store.add_task(title="old", task_id="b")
    store.set_archived("b")

    assert [t.id for t in list_selectable_tasks(store)] == ["a"]
    assert {t.id for t in store.list_tasks(include_archived=True)} == {"a", "b"}
    assert store.get_task("b").archived is True


def test_save_task_persists_session_and_entries_together(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(db)
    task = store.add_task(title="t", task_id="T1")

    session = ActiveSession(started_at=1000.0, description="Working")
    store.save_task(replace(task, active_session=session))
    assert store.get_task("T1").active_session == session
    assert store.list_active_task_ids() == ["T1"]

    entry = TimeEntry.close(session, 1090.0)
    store.save_task(replace(task, active_session=None, time_entries=(entry,)))

    # A fresh store on the same file sees the same state.
    reread = TaskStore(db).get_task("T1")
    assert reread.active_session is None
    assert reread.time_entries == (entry,)
    assert store.list_active_task_ids() == []


def test_save_task_never_drops_stored_entries(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    task = store.add_task(title="t", task_id="T1")
    e1 = TimeEntry(started_at=1, stopped_at=2, description="one", duration_seconds=1)
    e2 = TimeEntry(started_at=3, stopped_at=5, description="two", duration_seconds=2)

    store.save_task(replace(task, time_entries=(e1,)))
    store.save_task(replace(task, time_entries=(e1, e2)))
    # A stale copy with fewer entries does not truncate history.
    store.save_task(replace(task, time_entries=(e1,)))

    assert store.get_task("T1").time_entries == (e1, e2)


def test_save_unknown_task_is_a_persistence_error(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    session = ActiveSession(started_at=1, description="d")
    with pytest.raises(PersistenceError):
        store.save_task(Task(id="ghost", title="?", active_session=session))
    assert store.list_active_task_ids() == []


def test_failed_save_rolls_back_session_column(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(db)
    task = store.add_task(title="t", task_id="T1")
    e1 = TimeEntry(started_at=1, stopped_at=2, description="one", duration_seconds=1)
    store.save_task(replace(task, active_session=ActiveSession(started_at=1, description="d")))

    # Break the entries table so the second half of the write fails.
    conn = sqlite3.connect(str(db))
    conn.execute("DROP TABLE time_entries")
    conn.commit()
    conn.close()

    with pytest.raises(PersistenceError):
        store.save_task(replace(task, active_session=None, time_entries=(e1,)))

    conn = sqlite3.connect(str(db))
    (started,) = conn.execute("SELECT active_started_at FROM tasks WHERE id = 'T1'").fetchone()
    conn.close()
    assert started == 1


def test_resolve_task_accepts_ids_tasks_and_focus(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    task = store.add_task(title="t", task_id="T1")

    assert resolve_task(store, "T1") == store.get_task("T1")
    assert resolve_task(store, task).id == "T1"
    assert resolve_task(store, FocusContext(task_id="T1")).id == "T1"
    assert resolve_task(store, FocusContext()) is None
    assert resolve_task(store, "missing") is None
    assert resolve_task(store, None) is None


def test_total_tracked_seconds_includes_running_session() -> None:
    task = Task(
        id="T1",
        title="t",
        active_session=ActiveSession(started_at=100, description="d"),
        time_entries=(
            TimeEntry(started_at=0, stopped_at=30, description="a", duration_seconds=30),
            TimeEntry(started_at=40, stopped_at=50, description="b", duration_seconds=10),
        ),
    )
    assert total_tracked_seconds(task) == 40
    assert total_tracked_seconds(task, now_ts=160) == 100
    assert total_tracked_seconds(task, now_ts=50) == 40


def test_claim_session_only_succeeds_on_an_idle_task(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.add_task(title="t", task_id="T1")

    assert store.claim_session("T1", ActiveSession(started_at=10, description="first")) is True
    assert store.claim_session("T1", ActiveSession(started_at=20, description="second")) is False
    assert store.claim_session("ghost", ActiveSession(started_at=20, description="x")) is False

    assert store.get_task("T1").active_session == ActiveSession(started_at=10, description="first")
    assert store.list_active_task_ids() == ["T1"]


def test_close_session_requires_the_matching_running_session(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    store.add_task(title="t", task_id="T1")
    store.claim_session("T1", ActiveSession(started_at=10, description="work"))

    wrong = TimeEntry(started_at=11, stopped_at=40, description="work", duration_seconds=29)
    assert store.close_session("T1", wrong) is False
    assert store.get_task("T1").active_session is not None

    entry = TimeEntry(started_at=10, stopped_at=40, description="work", duration_seconds=30)
    assert store.close_session("T1", entry) is True
    assert store.close_session("T1", entry) is False

    stored = store.get_task("T1")
    assert stored.active_session is None
    assert stored.time_entries == (entry,)
    assert store.list_active_task_ids() == []
