# src/task_reminders/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..tasks.task_models import TaskFilter
from .ports import TaskRepo

if TYPE_CHECKING:
    from ..tasks.background import EngineBackgroundRunner
    from ..tasks.reminder_engine import ReminderEngine


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    task_store: TaskRepo
    engine: ReminderEngine

    # Set once the engine runs on its own loop; console calls go through it.
    engine_runner: EngineBackgroundRunner | None = None

    list_filter: TaskFilter = TaskFilter.ALL
