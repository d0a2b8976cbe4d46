# src/tasktime/cli/commands.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..core.state import AppState
from ..errors import TimeTrackingError, friendly_error_message
from ..tasks.task_api import list_selectable_tasks
from ..tasks.task_models import Task, total_tracked_seconds
from ..tracking.api import focus_ref, format_duration, prepare_form, resolve, start_tracking, stop_tracking

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /start, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _task_line(state: AppState, task: Task) -> str:
    marks = []
    if state.registry.is_active(task.id):
        marks.append("tracking")
    if task.archived:
        marks.append("archived")
    if task.id == state.focused_task_id:
        marks.append("focused")
    suffix = f" [{', '.join(marks)}]" if marks else ""
    return f"  {task.id}  {task.title}{suffix}"


async def _split_task_arg(state: AppState, args: list[str]) -> tuple[str | None, list[str]]:
    """First arg is a task id if it names a known task; otherwise everything is free text."""
    if args and await resolve(state, args[0]) is not None:
        return args[0], args[1:]
    return None, args


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    active = state.registry.active_task_ids()
    lines = [
        "Status:",
        f"  Tasks DB: {getattr(settings, 'tasks_db_path', '?')}",
        f"  Default description: {state.engine.config.default_description}",
        f"  Focused task: {state.focused_task_id or '-'}",
        f"  Active sessions: {len(active)}",
    ]
    now_ts = state.engine.clock.now()
    for task_id in active:
        task = await resolve(state, task_id)
        session = state.engine.get_active_session(task)
        if task is None or session is None:
            continue
        lines.append(
            f"    {task.id} {task.title}: {session.description} "
            f"({format_duration(now_ts - session.started_at)})"
        )
    return "\n".join(lines)


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    /tasks      -> tasks available for tracking
    /tasks all  -> include archived tasks
    """
    include_archived = bool(args) and args[0].lower() == "all"
    if include_archived:
        tasks = await asyncio.to_thread(state.task_store.list_tasks, include_archived=True)
    else:
        tasks = await asyncio.to_thread(list_selectable_tasks, state.task_store)
    if not tasks:
        return "No tasks. Use /add <title> to create one."
    for t in tasks:
        state.registry.reconcile(t)
    return "\n".join(["Tasks:", *(_task_line(state, t) for t in tasks)])


async def cmd_add(state: AppState, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /add <title>"
    task = await asyncio.to_thread(lambda: state.task_store.add_task(title=title))
    state.focused_task_id = task.id
    return f"Added task {task.id}: {task.title} (focused)"


async def cmd_archive(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /archive <task id>"
    task = await resolve(state, args[0])
    if task is None:
        return f"Unknown task: {args[0]}"
    await asyncio.to_thread(state.task_store.set_archived, task.id, True)
    if state.focused_task_id == task.id:
        state.focused_task_id = None
    return f"Archived task {task.id}."


async def cmd_focus(state: AppState, args: list[str]) -> str:
    """
    /focus      -> show focused task
    /focus <id> -> focus a task (archived tasks cannot be selected)
    """
    if not args:
        if not state.focused_task_id:
            return "No task focused. Use /focus <task id>."
        task = await resolve(state, state.focused_task_id)
        if task is None:
            state.focused_task_id = None
            return "Focused task no longer exists."
        return f"Focused: {task.id} {task.title}"

    task = await resolve(state, args[0])
    if task is None:
        return f"Unknown task: {args[0]}"
    if task.archived:
        return f"Task {task.id} is archived and cannot be selected."
    state.focused_task_id = task.id
    return f"Focused: {task.id} {task.title}"


async def cmd_track(state: AppState, args: list[str]) -> str:
    form = await prepare_form(state, focus_ref(state, args[0] if args else None))
    if form.task is None:
        return "Please select a task (/focus <id> or /track <id>)."
    lines = [
        f"Task: {form.task.id} {form.task.title}",
        f"Description: {form.description or '(' + form.placeholder + ')'}",
    ]
    if form.can_stop:
        lines.append("Tracking is active. Use /stop to stop it.")
    else:
        lines.append("Not tracking. Use /start [description] to start.")
    return "\n".join(lines)


async def cmd_start(state: AppState, args: list[str]) -> str:
    """/start [task id] [description...]"""
    task_id, rest = await _split_task_arg(state, args)
    return await start_tracking(state, focus_ref(state, task_id), " ".join(rest))


async def cmd_stop(state: AppState, args: list[str]) -> str:
    """/stop [task id]"""
    return await stop_tracking(state, focus_ref(state, args[0] if args else None))


async def cmd_entries(state: AppState, args: list[str]) -> str:
    task = await resolve(state, focus_ref(state, args[0] if args else None))
    if task is None:
        return "Please select a task."
    now_ts = state.engine.clock.now()
    lines = [f"Time entries for {task.id} {task.title}:"]
    if not task.time_entries:
        lines.append("  (none)")
    for i, e in enumerate(task.time_entries, start=1):
        lines.append(
            f"  {i}. {_fmt_ts(e.started_at)} -> {_fmt_ts(e.stopped_at)} "
            f"{format_duration(e.duration_seconds)} {e.description}"
        )
    if task.active_session is not None:
        lines.append(f"  running since {_fmt_ts(task.active_session.started_at)}: {task.active_session.description}")
    lines.append(f"Total: {format_duration(total_tracked_seconds(task, now_ts=now_ts))}")
    return "\n".join(lines)


def describe_command_error(err: Exception) -> str:
    if isinstance(err, TimeTrackingError):
        return friendly_error_message(err)
    if isinstance(err, ValueError):
        return str(err)
    return "Internal error while handling a command."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show settings and active sessions.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks | /tasks all.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task and focus it: /add <title>.")
registry.register("archive", cmd_archive, help_text="Archive a task: /archive <id>.")
registry.register("focus", cmd_focus, help_text="Show or set the focused task: /focus [id].")
registry.register("track", cmd_track, help_text="Show tracking state for a task: /track [id].")
registry.register("start", cmd_start, help_text="Start tracking: /start [id] [description].")
registry.register("stop", cmd_stop, help_text="Stop tracking: /stop [id].")
registry.register("entries", cmd_entries, help_text="Show time entries and total: /entries [id].")
