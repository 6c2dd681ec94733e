# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from intent_engine.cli.bootstrap import create_initial_state
from intent_engine.core.state import AppState
from intent_engine.tasks.task_service import TaskService
from intent_engine.tasks.task_store import TaskStore

from .fakes import CountingIds, SteppingClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the connectors.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    data_dir = tmp_path / "data"
    return SimpleNamespace(
        app_name="intent-test",
        log_level="DEBUG",
        console_enabled=True,
        matrix_enabled=False,
        matrix_homeserver="",
        matrix_user_id="",
        matrix_password="",
        matrix_rooms=[],
        data_dir=data_dir,
        tasks_path=data_dir / "tasks.json",
        matrix_store_path=data_dir / "matrix_store",
    )


@pytest.fixture()
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture()
def store(tmp_path: Path, clock: SteppingClock) -> TaskStore:
    """Real JSON store on tmp_path with a deterministic clock and ids."""
    return TaskStore(tmp_path / "tasks.json", clock=clock, id_factory=CountingIds())


@pytest.fixture()
def service(store: TaskStore) -> TaskService:
    return TaskService(store)


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired through the real composition root (real store on tmp_path)."""
    return create_initial_state(settings=settings)
