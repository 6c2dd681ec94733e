# src/intent_engine/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, NamedTuple


def parse_timestamp(raw: str) -> datetime:
    """Parse a stored ISO-8601 timestamp; naive values are rejected."""
    dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        raise ValueError(f"timestamp without timezone: {raw!r}")
    return dt


def _timestamp(raw: Any, name: str) -> str:
    if not isinstance(raw, str):
        raise TypeError(f"{name} must be a string, got {type(raw).__name__}")
    parse_timestamp(raw)
    return raw


def _optional_timestamp(raw: Any, name: str) -> str | None:
    return None if raw is None else _timestamp(raw, name)


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - only pending -> done is produced today.
    - "archived" is kept so stored files never need a migration once archiving lands.
    """

    PENDING = "pending"
    DONE = "done"
    ARCHIVED = "archived"


class EnergyLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class HistoryAction(StrEnum):
    CREATED = "created"
    SELECTED = "selected"
    SKIPPED = "skipped"
    COMPLETED = "completed"
    EDITED = "edited"
    ARCHIVED = "archived"


@dataclass(slots=True)
class TaskHistoryEntry:
    timestamp: str
    action: HistoryAction
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"timestamp": self.timestamp, "action": self.action.value}
        if self.note is not None:
            out["note"] = self.note
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TaskHistoryEntry:
        if not isinstance(raw, dict):
            raise TypeError(f"history entry must be an object, got {type(raw).__name__}")
        note = raw.get("note")
        return cls(
            timestamp=_timestamp(raw["timestamp"], "history timestamp"),
            action=HistoryAction(raw["action"]),
            note=str(note) if note is not None else None,
        )


@dataclass(slots=True)
class Task:
    id: str
    text: str
    status: TaskStatus
    energy: EnergyLevel
    created_at: str

    skip_count: int = 0
    history: list[TaskHistoryEntry] = field(default_factory=list)

    last_selected_at: str | None = None
    last_skipped_at: str | None = None
    completed_at: str | None = None

    # Caller metadata, opaque to the engine.
    estimated_minutes: int | None = None
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys of the on-disk format; unset optionals are omitted."""
        out: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "status": self.status.value,
            "energy": self.energy.value,
            "createdAt": self.created_at,
        }
        if self.last_selected_at is not None:
            out["lastSelectedAt"] = self.last_selected_at
        if self.last_skipped_at is not None:
            out["lastSkippedAt"] = self.last_skipped_at
        if self.completed_at is not None:
            out["completedAt"] = self.completed_at
        out["skipCount"] = self.skip_count
        if self.estimated_minutes is not None:
            out["estimatedMinutes"] = self.estimated_minutes
        if self.tags is not None:
            out["tags"] = list(self.tags)
        out["history"] = [h.to_dict() for h in self.history]
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """
        Parse one stored task record.

        Raises KeyError / ValueError / TypeError on malformed input; the store
        turns those into StorageCorruptError.
        """
        if not isinstance(raw, dict):
            raise TypeError(f"task record must be an object, got {type(raw).__name__}")

        history_raw = raw.get("history", [])
        if not isinstance(history_raw, list):
            raise TypeError("history must be a list")

        tags_raw = raw.get("tags")
        if tags_raw is not None and not isinstance(tags_raw, list):
            raise TypeError("tags must be a list")

        minutes = raw.get("estimatedMinutes")

        return cls(
            id=str(raw["id"]),
            text=str(raw["text"]),
            status=TaskStatus(raw["status"]),
            energy=EnergyLevel(raw["energy"]),
            created_at=_timestamp(raw["createdAt"], "createdAt"),
            skip_count=int(raw.get("skipCount", 0)),
            history=[TaskHistoryEntry.from_dict(h) for h in history_raw],
            last_selected_at=_optional_timestamp(raw.get("lastSelectedAt"), "lastSelectedAt"),
            last_skipped_at=_optional_timestamp(raw.get("lastSkippedAt"), "lastSkippedAt"),
            completed_at=_optional_timestamp(raw.get("completedAt"), "completedAt"),
            estimated_minutes=int(minutes) if minutes is not None else None,
            tags=[str(t) for t in tags_raw] if tags_raw is not None else None,
        )


@dataclass(slots=True)
class TaskDatabase:
    """The persisted aggregate: a format version plus every task in insertion order."""

    version: int = 1
    tasks: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "tasks": [t.to_dict() for t in self.tasks]}


@dataclass(frozen=True, slots=True)
class TaskNotFound:
    """Result of TaskStore.complete when no task carries the requested id."""

    task_id: str


TaskLookup = Task | TaskNotFound


class TaskCount(NamedTuple):
    total: int
    pending: int
    done: int
