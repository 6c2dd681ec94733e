# src/intent_engine/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..core.errors import StorageCorruptError
from .task_models import (
    EnergyLevel,
    HistoryAction,
    Task,
    TaskDatabase,
    TaskHistoryEntry,
    TaskLookup,
    TaskNotFound,
    TaskStatus,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(dt: datetime) -> str:
    """Fixed-width ISO-8601 UTC with milliseconds, e.g. 2026-10-19T08:15:02.123Z."""
    dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


class TaskStore:
    """
    JSON file task store.

    The whole document is loaded, mutated and rewritten on every change:
    - the file is {"version": 1, "tasks": [...]} in insertion order
    - a missing file is created empty on first read
    - writes go to a sibling temp file and are os.replace()d into place

    Thread-safety:
    - first-time initialization and the write itself are locked
    - load/mutate/save cycles are NOT serialized; callers that mutate from
      several threads must hold their own lock (AppState.lock)
    """

    def __init__(
        self,
        path: str | Path = "data/tasks.json",
        *,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._path = Path(path)
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _new_id
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ---- low-level helpers ----

    def _now(self) -> str:
        return format_timestamp(self._clock())

    def _write_document(self, db: TaskDatabase) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(db.to_dict(), ensure_ascii=False, indent=2)
        tmp = self._path.with_name(self._path.name + ".tmp")
        with self._write_lock:
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, self._path)

    def _initialize(self) -> None:
        with self._write_lock:
            # Another caller may have won the race while we waited.
            if self._path.exists():
                return
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_name(self._path.name + ".tmp")
            tmp.write_text(json.dumps(TaskDatabase().to_dict(), indent=2), "utf-8")
            os.replace(tmp, self._path)
        logger.info("TaskStore initialized empty task file %s", self._path)

    def _parse_document(self, raw: bytes) -> list[Task]:
        try:
            data = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise StorageCorruptError(self._path, f"not valid UTF-8 ({e})") from e
        except json.JSONDecodeError as e:
            raise StorageCorruptError(self._path, f"invalid JSON ({e})") from e

        if not isinstance(data, dict):
            raise StorageCorruptError(self._path, "top-level value is not an object")

        version = data.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            raise StorageCorruptError(self._path, f"missing or non-integer version: {version!r}")
        if version != FORMAT_VERSION:
            raise StorageCorruptError(self._path, f"unsupported version {version}")

        records = data.get("tasks")
        if not isinstance(records, list):
            raise StorageCorruptError(self._path, "'tasks' is not a list")

        tasks: list[Task] = []
        for i, rec in enumerate(records):
            try:
                tasks.append(Task.from_dict(rec))
            except (KeyError, TypeError, ValueError) as e:
                raise StorageCorruptError(self._path, f"task #{i} is malformed ({e!r})") from e
        return tasks

    # ---- public API ----

    def load(self) -> list[Task]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            self._initialize()
            return []

        tasks = self._parse_document(raw)
        logger.debug("TaskStore loaded %d tasks from %s", len(tasks), self._path)
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        db = TaskDatabase(version=FORMAT_VERSION, tasks=list(tasks))
        self._write_document(db)
        logger.debug("TaskStore saved %d tasks to %s", len(db.tasks), self._path)

    def create(self, text: str, energy: EnergyLevel = EnergyLevel.MEDIUM) -> Task:
        tasks = self.load()

        now = self._now()
        task = Task(
            id=self._id_factory(),
            text=text,
            status=TaskStatus.PENDING,
            energy=EnergyLevel(energy),
            created_at=now,
            skip_count=0,
            history=[TaskHistoryEntry(timestamp=now, action=HistoryAction.CREATED)],
        )

        tasks.append(task)
        self.save(tasks)
        logger.info("Task created id=%s energy=%s", task.id, task.energy.value)
        return task

    def complete(self, task_id: str) -> TaskLookup:
        """
        Mark a task done.

        Completing an already-done task is allowed: completed_at moves forward
        and another "completed" entry is appended.
        """
        tasks = self.load()
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None:
            logger.debug("complete: no task id=%s", task_id)
            return TaskNotFound(task_id)

        now = self._now()
        # History timestamps must not go backwards even if the wall clock does.
        if task.history and parse_timestamp(now) < parse_timestamp(task.history[-1].timestamp):
            now = task.history[-1].timestamp

        task.status = TaskStatus.DONE
        task.completed_at = now
        task.history.append(TaskHistoryEntry(timestamp=now, action=HistoryAction.COMPLETED))

        self.save(tasks)
        logger.info("Task completed id=%s completions=%d", task.id, len(task.history) - 1)
        return task

    def list(self) -> list[Task]:
        return self.load()
