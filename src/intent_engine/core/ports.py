# src/intent_engine/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The service depends on Protocols instead of concrete implementations.
This keeps storage backends swappable and makes testing easier.
"""

from typing import Awaitable, Iterable, Protocol

from ..tasks.task_models import EnergyLevel, Task, TaskLookup


class TaskRepo(Protocol):
    """Durable task state: full-document load/save plus the two mutations."""

    def load(self) -> list[Task]: ...
    def save(self, tasks: Iterable[Task]) -> None: ...
    def create(self, text: str, energy: EnergyLevel = EnergyLevel.MEDIUM) -> Task: ...
    def complete(self, task_id: str) -> TaskLookup: ...
    def list(self) -> list[Task]: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how a reply leaves the process.

    The Matrix connector implements it on top of nio's room_send.
    """

    def send_text(self, *, room_id: str, text: str) -> Awaitable[None]: ...
