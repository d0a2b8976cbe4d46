# src/tasktime/tracking/engine.py

from __future__ import annotations

"""
Session engine.

Owns the lifecycle of one task's tracking session:
- get_active_session: pure lookup on a Task record
- start: open a session (at most one per task)
- stop: close the session into a TimeEntry appended to the task's history

Every mutation re-reads the task from the store right before writing, and the
registry is only told about a change after the store accepted it.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..core.ports import Clock, SystemClock, TaskRepo
from ..errors import AlreadyTrackingError, NoActiveSessionError, NoTaskSelectedError, PersistenceError
from ..tasks.task_models import ActiveSession, Task, TimeEntry
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Work session"


@dataclass(frozen=True, slots=True)
class TrackingConfig:
    default_description: str = DEFAULT_DESCRIPTION

    @staticmethod
    def from_settings(settings) -> TrackingConfig:
        raw = str(getattr(settings, "default_description", "") or "").strip()
        return TrackingConfig(default_description=raw or DEFAULT_DESCRIPTION)


class SessionEngine:
    def __init__(
        self,
        store: TaskRepo,
        *,
        config: TrackingConfig | None = None,
        registry: SessionRegistry | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.config = config or TrackingConfig()
        self.registry = registry or SessionRegistry()
        self.clock = clock or SystemClock()

    # ----- Queries -----
    @staticmethod
    def get_active_session(task: Task | None) -> ActiveSession | None:
        if task is None:
            return None
        return getattr(task, "active_session", None)

    # ----- Commands -----
    async def start(self, task: Task | None, description: str | None = "") -> ActiveSession:
        current = await self._reload(task)

        if current.active_session is not None:
            raise AlreadyTrackingError(current.id, current.active_session)

        session = ActiveSession(
            started_at=self.clock.now(),
            description=(description or "").strip() or self.config.default_description,
        )
        # Conditional write: loses cleanly to a concurrent start on the same task.
        claimed = await self._write(self.store.claim_session, current.id, session)
        if not claimed:
            latest = await self._reload(current)
            raise AlreadyTrackingError(current.id, latest.active_session or session)
        self.registry.on_session_started(current.id)

        logger.info("Tracking started task_id=%s description=%r", current.id, session.description)
        return session

    async def stop(self, task: Task | None) -> TimeEntry:
        current = await self._reload(task)

        session = current.active_session
        if session is None:
            raise NoActiveSessionError(current.id)

        stopped_at = self.clock.now()
        if stopped_at < session.started_at:
            logger.warning(
                "Clock went backwards task_id=%s started_at=%s stopped_at=%s; recording zero duration",
                current.id,
                session.started_at,
                stopped_at,
            )
        entry = TimeEntry.close(session, stopped_at)

        closed = await self._write(self.store.close_session, current.id, entry)
        if not closed:
            # Someone else stopped (or restarted) it between our read and write.
            await self._reload(current)
            raise NoActiveSessionError(current.id)
        self.registry.on_session_stopped(current.id)

        logger.info("Tracking stopped task_id=%s duration=%.0fs", current.id, entry.duration_seconds)
        return entry

    # ----- Store access -----
    async def _reload(self, task: Task | None) -> Task:
        """Fetch the stored version of task; the caller's copy may be stale."""
        if task is None:
            raise NoTaskSelectedError()

        try:
            current = await asyncio.to_thread(self.store.get_task, task.id)
        except PersistenceError:
            raise
        except Exception as e:
            logger.exception("get_task failed task_id=%s", task.id)
            raise PersistenceError(f"Cannot read task {task.id}") from e

        if current is None:
            self.registry.forget(task.id)
            raise NoTaskSelectedError(f"Task not found: {task.id}")

        self.registry.reconcile(current)
        return current

    async def _write(self, op: Callable[..., bool], task_id: str, *args: Any) -> bool:
        name = getattr(op, "__name__", "write")
        try:
            return bool(await asyncio.to_thread(op, task_id, *args))
        except PersistenceError:
            logger.exception("%s failed task_id=%s", name, task_id)
            raise
        except Exception as e:
            logger.exception("%s failed task_id=%s", name, task_id)
            raise PersistenceError(f"Cannot save task {task_id}") from e
