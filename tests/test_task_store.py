# tests/test_task_store.py

from __future__ import annotations

import json
import threading
from datetime import timedelta
from pathlib import Path

import pytest

from intent_engine.core.errors import StorageCorruptError
from intent_engine.tasks.task_models import (
    EnergyLevel,
    HistoryAction,
    Task,
    TaskHistoryEntry,
    TaskNotFound,
    TaskStatus,
)
from intent_engine.tasks.task_store import TaskStore, parse_timestamp

from .fakes import CountingIds, SteppingClock


def test_load_initializes_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "tasks.json"
    store = TaskStore(path)

    assert store.load() == []
    assert json.loads(path.read_text("utf-8")) == {"version": 1, "tasks": []}


def test_concurrent_first_load_initializes_once(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.json")
    results: list[list[Task]] = []
    errors: list[BaseException] = []

    def worker() -> None:
        try:
            results.append(store.load())
        except BaseException as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert results == [[]] * 8
    assert json.loads(store.path.read_text("utf-8")) == {"version": 1, "tasks": []}


def test_create_persists_new_pending_task(store: TaskStore) -> None:
    task = store.create("Write unit tests", EnergyLevel.HIGH)

    assert task.status == TaskStatus.PENDING
    assert task.energy == EnergyLevel.HIGH
    assert task.skip_count == 0
    assert task.completed_at is None
    assert [h.action for h in task.history] == [HistoryAction.CREATED]
    assert task.history[0].timestamp == task.created_at

    assert store.load() == [task]


def test_create_appends_in_order_with_unique_ids(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.json")
    created = [store.create(f"task {i}", EnergyLevel.LOW) for i in range(5)]

    loaded = store.list()
    assert [t.text for t in loaded] == [f"task {i}" for i in range(5)]
    assert len({t.id for t in created}) == 5


def test_complete_marks_done_and_logs(store: TaskStore) -> None:
    task = store.create("Deploy", EnergyLevel.MEDIUM)

    done = store.complete(task.id)

    assert isinstance(done, Task)
    assert done.status == TaskStatus.DONE
    assert done.completed_at is not None
    assert parse_timestamp(done.completed_at) >= parse_timestamp(done.created_at)
    assert [h.action for h in done.history] == [HistoryAction.CREATED, HistoryAction.COMPLETED]
    assert store.load()[0] == done


def test_complete_twice_appends_second_entry(store: TaskStore) -> None:
    task = store.create("Review PR", EnergyLevel.LOW)

    first = store.complete(task.id)
    assert isinstance(first, Task)
    first_completed_at = first.completed_at

    second = store.complete(task.id)
    assert isinstance(second, Task)
    assert second.status == TaskStatus.DONE
    assert second.completed_at is not None and first_completed_at is not None
    assert parse_timestamp(second.completed_at) > parse_timestamp(first_completed_at)
    assert [h.action for h in second.history] == [
        HistoryAction.CREATED,
        HistoryAction.COMPLETED,
        HistoryAction.COMPLETED,
    ]


def test_complete_missing_returns_not_found(store: TaskStore) -> None:
    store.create("something", EnergyLevel.LOW)
    before = store.path.read_text("utf-8")

    assert store.complete("missing-id") == TaskNotFound("missing-id")
    assert store.path.read_text("utf-8") == before


def test_history_never_goes_backwards_when_clock_does(tmp_path: Path) -> None:
    clock = SteppingClock(step=timedelta(seconds=-5))
    store = TaskStore(tmp_path / "tasks.json", clock=clock, id_factory=CountingIds())

    task = store.create("time travel", EnergyLevel.MEDIUM)
    store.complete(task.id)
    done = store.complete(task.id)

    assert isinstance(done, Task)
    stamps = [parse_timestamp(h.timestamp) for h in done.history]
    assert stamps == sorted(stamps)
    assert done.completed_at == done.created_at


def test_save_then_load_round_trip(store: TaskStore) -> None:
    tasks = [
        Task(
            id="a",
            text="with metadata",
            status=TaskStatus.ARCHIVED,
            energy=EnergyLevel.HIGH,
            created_at="2026-10-19T08:00:00.000Z",
            skip_count=3,
            history=[
                TaskHistoryEntry("2026-10-19T08:00:00.000Z", HistoryAction.CREATED),
                TaskHistoryEntry("2026-10-19T09:00:00.000Z", HistoryAction.SKIPPED, note="too tired"),
                TaskHistoryEntry("2026-10-19T10:00:00.000Z", HistoryAction.ARCHIVED),
            ],
            last_selected_at="2026-10-19T08:30:00.000Z",
            last_skipped_at="2026-10-19T09:00:00.000Z",
            estimated_minutes=20,
            tags=["home", "health"],
        ),
        Task(
            id="b",
            text="plain",
            status=TaskStatus.PENDING,
            energy=EnergyLevel.LOW,
            created_at="2026-10-19T08:01:00.000Z",
            history=[TaskHistoryEntry("2026-10-19T08:01:00.000Z", HistoryAction.CREATED)],
        ),
    ]

    store.save(tasks)

    assert store.load() == tasks


def test_save_overwrites_instead_of_merging(store: TaskStore) -> None:
    a = store.create("a", EnergyLevel.LOW)
    store.create("b", EnergyLevel.LOW)

    store.save([a])

    assert [t.text for t in store.load()] == ["a"]


def test_file_format_uses_camel_case_and_omits_unset_fields(store: TaskStore) -> None:
    task = store.create("Write unit tests", EnergyLevel.MEDIUM)
    store.complete(task.id)

    doc = json.loads(store.path.read_text("utf-8"))
    assert doc["version"] == 1
    (record,) = doc["tasks"]
    assert record["id"] == task.id
    assert record["createdAt"] == task.created_at
    assert "completedAt" in record
    assert record["skipCount"] == 0
    assert "lastSkippedAt" not in record
    assert "tags" not in record
    assert record["history"][0] == {"timestamp": task.created_at, "action": "created"}
    assert record["history"][1]["action"] == "completed"


def test_save_leaves_no_temp_file(store: TaskStore) -> None:
    store.create("x", EnergyLevel.LOW)
    assert sorted(p.name for p in store.path.parent.iterdir()) == ["tasks.json"]


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        '{"tasks": []}',
        '{"version": 2, "tasks": []}',
        '{"version": 1, "tasks": {}}',
        '{"version": 1, "tasks": [{"id": "x"}]}',
        '{"version": 1, "tasks": [{"id": "x", "text": "t", "status": "weird", '
        '"energy": "low", "createdAt": "2026-10-19T08:00:00.000Z", "history": []}]}',
    ],
)
def test_unparseable_file_raises_storage_corrupt(tmp_path: Path, content: str) -> None:
    path = tmp_path / "tasks.json"
    path.write_text(content, "utf-8")
    store = TaskStore(path)

    with pytest.raises(StorageCorruptError):
        store.load()
    with pytest.raises(StorageCorruptError):
        store.create("never saved", EnergyLevel.LOW)

    assert path.read_text("utf-8") == content


def test_non_utf8_file_raises_storage_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    content = b'{"version": 1, "tasks": [\xff]}'
    path.write_bytes(content)
    store = TaskStore(path)

    with pytest.raises(StorageCorruptError):
        store.load()
    assert path.read_bytes() == content


def _record(**overrides) -> dict:
    rec = {
        "id": "x",
        "text": "t",
        "status": "pending",
        "energy": "low",
        "createdAt": "2026-10-19T08:00:00.000Z",
        "skipCount": 0,
        "history": [{"timestamp": "2026-10-19T08:00:00.000Z", "action": "created"}],
    }
    rec.update(overrides)
    return rec


@pytest.mark.parametrize(
    "record",
    [
        _record(history=[1]),
        _record(history=["created"]),
        _record(history=[{"timestamp": "yesterday", "action": "created"}]),
        _record(history=[{"timestamp": "2026-10-19T08:00:00", "action": "created"}]),
        _record(history=[{"timestamp": 1760860800, "action": "created"}]),
        _record(createdAt="yesterday"),
        _record(createdAt="2026-10-19T08:00:00"),
        _record(status="done", completedAt="soon"),
        _record(lastSkippedAt="not a date"),
    ],
)
def test_malformed_records_raise_storage_corrupt(tmp_path: Path, record: dict) -> None:
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps({"version": 1, "tasks": [record]}), "utf-8")
    store = TaskStore(path)

    with pytest.raises(StorageCorruptError):
        store.load()
    with pytest.raises(StorageCorruptError):
        store.complete("x")


def test_offset_timestamps_load_and_complete(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    record = _record(
        createdAt="2026-10-19T10:00:00+02:00",
        history=[{"timestamp": "2026-10-19T10:00:00+02:00", "action": "created"}],
    )
    path.write_text(json.dumps({"version": 1, "tasks": [record]}), "utf-8")
    store = TaskStore(path, clock=SteppingClock(), id_factory=CountingIds())

    done = store.complete("x")

    assert isinstance(done, Task)
    assert done.status == TaskStatus.DONE
    assert [h.action for h in done.history] == [HistoryAction.CREATED, HistoryAction.COMPLETED]


def test_other_io_errors_propagate(tmp_path: Path) -> None:
    # A directory where the file should be: not "missing", so not recovered.
    path = tmp_path / "tasks.json"
    path.mkdir()
    store = TaskStore(path)

    with pytest.raises(OSError) as excinfo:
        store.load()
    assert not isinstance(excinfo.value, FileNotFoundError)
