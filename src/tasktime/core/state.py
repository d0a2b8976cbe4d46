# src/tasktime/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..core.ports import TaskRepo
from ..tracking.engine import SessionEngine


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    task_store: TaskRepo
    engine: SessionEngine

    # Console-side "currently focused task"; passed to the engine explicitly.
    focused_task_id: str | None = None

    @property
    def registry(self):
        return self.engine.registry
