# src/tasktime/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
import uuid
from pathlib import Path

from ..errors import PersistenceError
from .task_models import ActiveSession, Task, TimeEntry

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store.

    Layout:
    - tasks: one row per task; the active session lives in two nullable columns
      (active_started_at, active_description), both NULL when not tracking
    - time_entries: append-only history keyed by (task_id, seq)

    save_task() writes both tables in a single transaction, so a task can never be
    observed with its session cleared but the matching entry missing (or vice versa).

    Thread-safety:
    - each method opens its own SQLite connection (the engine calls us from worker threads)
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except PersistenceError:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open task store {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    archived INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    active_started_at REAL,
                    active_description TEXT
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS time_entries (
                    task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
                    seq INTEGER NOT NULL,
                    started_at REAL NOT NULL,
                    stopped_at REAL NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    duration_seconds REAL NOT NULL,
                    PRIMARY KEY (task_id, seq)
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("archived", "INTEGER NOT NULL DEFAULT 0")
            add_col("active_started_at", "REAL")
            add_col("active_description", "TEXT")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_active ON tasks(active_started_at) "
                "WHERE active_started_at IS NOT NULL"
            )

            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot prepare task store schema: {e}") from e
        finally:
            conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> TimeEntry:
        return TimeEntry(
            started_at=float(row["started_at"]),
            stopped_at=float(row["stopped_at"]),
            description=str(row["description"] or ""),
            duration_seconds=max(0.0, float(row["duration_seconds"] or 0.0)),
        )

    def _row_to_task(self, row: sqlite3.Row, entries: tuple[TimeEntry, ...]) -> Task:
        session = None
        if row["active_started_at"] is not None:
            session = ActiveSession(
                started_at=float(row["active_started_at"]),
                description=str(row["active_description"] or ""),
            )
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            archived=bool(row["archived"]),
            active_session=session,
            time_entries=entries,
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
        )

    def _load_entries(self, cur: sqlite3.Cursor, task_id: str) -> tuple[TimeEntry, ...]:
        cur.execute(
            "SELECT * FROM time_entries WHERE task_id = ? ORDER BY seq ASC",
            (task_id,),
        )
        return tuple(self._row_to_entry(r) for r in cur.fetchall())

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        except sqlite3.Error as e:
            raise PersistenceError(f"count_tasks failed: {e}") from e
        finally:
            conn.close()

    def add_task(self, *, title: str, task_id: str | None = None) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")

        tid = (task_id or "").strip() or uuid.uuid4().hex[:8]
        now = time.time()

        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO tasks(id, title, archived, created_at, updated_at) VALUES (?, ?, 0, ?, ?)",
                (tid, title.strip(), now, now),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise ValueError(f"task id already exists: {tid}") from e
        except sqlite3.Error as e:
            raise PersistenceError(f"add_task failed: {e}") from e
        finally:
            conn.close()

        logger.debug("Task added id=%s title=%r", tid, title)
        return Task(id=tid, title=title.strip(), created_at=now, updated_at=now)

    def get_task(self, task_id: str) -> Task | None:
        if not task_id:
            return None

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (str(task_id),))
            row = cur.fetchone()
            if row is None:
                return None
            return self._row_to_task(row, self._load_entries(cur, row["id"]))
        except sqlite3.Error as e:
            raise PersistenceError(f"get_task failed id={task_id}: {e}") from e
        finally:
            conn.close()

    def list_tasks(self, *, include_archived: bool = False) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            if include_archived:
                cur.execute("SELECT * FROM tasks ORDER BY created_at ASC")
            else:
                cur.execute("SELECT * FROM tasks WHERE archived = 0 ORDER BY created_at ASC")
            rows = cur.fetchall()
            return [self._row_to_task(r, self._load_entries(cur, r["id"])) for r in rows]
        except sqlite3.Error as e:
            raise PersistenceError(f"list_tasks failed: {e}") from e
        finally:
            conn.close()

    def list_active_task_ids(self) -> list[str]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT id FROM tasks WHERE active_started_at IS NOT NULL")
            return [str(r["id"]) for r in cur.fetchall()]
        except sqlite3.Error as e:
            raise PersistenceError(f"list_active_task_ids failed: {e}") from e
        finally:
            conn.close()

    def set_archived(self, task_id: str, archived: bool = True) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE tasks SET archived = ?, updated_at = ? WHERE id = ?",
                (1 if archived else 0, time.time(), str(task_id)),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"set_archived failed id={task_id}: {e}") from e
        finally:
            conn.close()

    def claim_session(self, task_id: str, session: ActiveSession) -> bool:
        """
        Best-effort claim of the task's session slot.

        Atomically transitions:
          no active session -> session

        Returns True if the session was stored by this caller.
        """
        conn = self._get_conn()
        try:
            with conn:
                cur = conn.execute(
                    """
                    UPDATE tasks
                    SET active_started_at = ?, active_description = ?, updated_at = ?
                    WHERE id = ?
                      AND active_started_at IS NULL
                    """,
                    (session.started_at, session.description, time.time(), str(task_id)),
                )
            return cur.rowcount == 1
        except sqlite3.Error as e:
            raise PersistenceError(f"claim_session failed id={task_id}: {e}") from e
        finally:
            conn.close()

    def close_session(self, task_id: str, entry: TimeEntry) -> bool:
        """
        Clear the session that started at entry.started_at and append entry, in one transaction.

        Returns False (and writes nothing) if that session is no longer the active one.
        """
        conn = self._get_conn()
        try:
            with conn:
                cur = conn.execute(
                    """
                    UPDATE tasks
                    SET active_started_at = NULL, active_description = NULL, updated_at = ?
                    WHERE id = ?
                      AND active_started_at = ?
                    """,
                    (time.time(), str(task_id), entry.started_at),
                )
                if cur.rowcount != 1:
                    return False

                (stored,) = conn.execute(
                    "SELECT COUNT(*) FROM time_entries WHERE task_id = ?",
                    (str(task_id),),
                ).fetchone()
                conn.execute(
                    """
                    INSERT INTO time_entries(
                        task_id, seq, started_at, stopped_at, description, duration_seconds
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(task_id),
                        int(stored),
                        entry.started_at,
                        entry.stopped_at,
                        entry.description,
                        max(0.0, entry.duration_seconds),
                    ),
                )
            logger.debug("Session closed id=%s seq=%s", task_id, stored)
            return True
        except sqlite3.Error as e:
            raise PersistenceError(f"close_session failed id={task_id}: {e}") from e
        finally:
            conn.close()

    def save_task(self, task: Task) -> None:
        """
        Persist the tracking state of an existing task.

        Entries are append-only: rows already stored are kept, entries beyond the
        stored count are inserted. The session columns and the new entries are
        written in one transaction.
        """
        session = task.active_session
        now = time.time()

        conn = self._get_conn()
        try:
            with conn:
                cur = conn.execute(
                    """
                    UPDATE tasks
                    SET active_started_at = ?,
                        active_description = ?,
                        archived = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        session.started_at if session else None,
                        session.description if session else None,
                        1 if task.archived else 0,
                        now,
                        task.id,
                    ),
                )
                if cur.rowcount != 1:
                    raise PersistenceError(f"Task not found in store: {task.id}")

                (stored,) = conn.execute(
                    "SELECT COUNT(*) FROM time_entries WHERE task_id = ?",
                    (task.id,),
                ).fetchone()

                new_entries = task.time_entries[int(stored):]
                conn.executemany(
                    """
                    INSERT INTO time_entries(
                        task_id, seq, started_at, stopped_at, description, duration_seconds
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            task.id,
                            int(stored) + i,
                            e.started_at,
                            e.stopped_at,
                            e.description,
                            max(0.0, e.duration_seconds),
                        )
                        for i, e in enumerate(new_entries)
                    ],
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"save_task failed id={task.id}: {e}") from e
        finally:
            conn.close()

        logger.debug(
            "Task saved id=%s tracking=%s entries=%d",
            task.id,
            session is not None,
            len(task.time_entries),
        )
