# src/intent_engine/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings object (config.Settings or a test SimpleNamespace).
    settings: Any

    task_store: TaskStore
    task_service: TaskService

    # Held around command handling so the console and Matrix threads
    # never interleave load/mutate/save cycles.
    lock: threading.Lock = field(default_factory=threading.Lock)
