# src/tasktime/tracking/api.py

"""
Presentation boundary for time tracking.

Connectors (console, tests) call these helpers instead of the engine directly:
- a task reference is resolved through the store and fed to the registry
- engine errors become user-facing notices; nothing here raises to the caller
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..core.state import AppState
from ..errors import AlreadyTrackingError, TimeTrackingError, friendly_error_message
from ..tasks.task_api import FocusContext, TaskRef, resolve_task
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrackingForm:
    """What a start/stop prompt should show for the selected task."""

    task: Task | None
    description: str
    placeholder: str
    can_stop: bool


def format_duration(seconds: float) -> str:
    total = max(0, int(round(seconds)))
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}h {m:02d}m {s:02d}s"
    if m:
        return f"{m}m {s:02d}s"
    return f"{s}s"


def focus_ref(state: AppState, task_id: str | None = None) -> TaskRef:
    """Explicit id wins; otherwise fall back to the focused task."""
    if task_id:
        return task_id
    return FocusContext(task_id=state.focused_task_id)


async def resolve(state: AppState, ref: TaskRef) -> Task | None:
    """Resolve off the event loop (SQLite is blocking) and feed the result to the registry."""
    task = await asyncio.to_thread(resolve_task, state.task_store, ref)
    if task is not None:
        state.registry.reconcile(task)
    elif isinstance(ref, str):
        state.registry.forget(ref)
    return task


async def prepare_form(state: AppState, ref: TaskRef, *, prefilled_description: str = "") -> TrackingForm:
    """
    Build the prompt for a selected task.

    If the task is already tracking, the description is pre-filled from the running
    session and stopping is offered; otherwise the caller's prefill is kept.
    """
    placeholder = state.engine.config.default_description
    try:
        task = await resolve(state, ref)
    except TimeTrackingError:
        logger.exception("prepare_form: cannot resolve task")
        task = None

    session = state.engine.get_active_session(task)
    if session is not None:
        return TrackingForm(task=task, description=session.description or "", placeholder=placeholder, can_stop=True)
    return TrackingForm(task=task, description=prefilled_description, placeholder=placeholder, can_stop=False)


async def start_tracking(state: AppState, ref: TaskRef, description: str = "") -> str:
    try:
        task = await resolve(state, ref)
        if task is None:
            return "Please select a task."

        # Check first so the user gets a notice instead of relying on the engine error.
        active = state.engine.get_active_session(task)
        if active is not None:
            return friendly_error_message(AlreadyTrackingError(task.id, active))

        session = await state.engine.start(task, description)
    except TimeTrackingError as e:
        logger.info("Start tracking failed: %s", e)
        return friendly_error_message(e)
    except Exception:
        logger.exception("Error starting time tracking")
        return "Failed to start time tracking. Check the log for details."

    return f"Started tracking {task.title!r}: {session.description}"


async def stop_tracking(state: AppState, ref: TaskRef) -> str:
    try:
        task = await resolve(state, ref)
        if task is None:
            return "Please select a task."
        entry = await state.engine.stop(task)
    except TimeTrackingError as e:
        logger.info("Stop tracking failed: %s", e)
        return friendly_error_message(e)
    except Exception:
        logger.exception("Error stopping time tracking")
        return "Failed to stop time tracking. Check the log for details."

    return f"Stopped tracking {task.title!r}: {entry.description} ({format_duration(entry.duration_seconds)})"
