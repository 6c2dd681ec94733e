# src/intent_engine/tasks/task_service.py

from __future__ import annotations

import logging

from ..core.errors import TaskNotFoundError
from ..core.ports import TaskRepo
from .task_models import EnergyLevel, Task, TaskCount, TaskNotFound, TaskStatus

logger = logging.getLogger(__name__)


class TaskService:
    """
    Lifecycle operations on top of a TaskRepo.

    This is where "not found" stops being a value and becomes TaskNotFoundError.
    """

    def __init__(self, store: TaskRepo) -> None:
        self._store = store

    def create_task(self, text: str, energy: EnergyLevel = EnergyLevel.MEDIUM) -> Task:
        return self._store.create(text, energy)

    def complete_task(self, task_id: str) -> Task:
        result = self._store.complete(task_id)
        if isinstance(result, TaskNotFound):
            raise TaskNotFoundError(result.task_id)
        return result

    def complete_task_by_index(self, index: int) -> Task:
        """
        Complete the index-th (0-based) *pending* task.

        Done tasks are skipped when counting, so "/done 2" always means the
        second item of the pending list the user was shown.
        """
        pending = self.get_pending_tasks()
        if index < 0 or index >= len(pending):
            logger.debug("complete_task_by_index: %d out of range (pending=%d)", index, len(pending))
            raise TaskNotFoundError(f"index {index}")
        return self.complete_task(pending[index].id)

    def get_all_tasks(self) -> list[Task]:
        return self._store.list()

    def get_pending_tasks(self) -> list[Task]:
        return [t for t in self._store.list() if t.status == TaskStatus.PENDING]

    def get_task_count(self) -> TaskCount:
        tasks = self._store.list()
        return TaskCount(
            total=len(tasks),
            pending=sum(1 for t in tasks if t.status == TaskStatus.PENDING),
            done=sum(1 for t in tasks if t.status == TaskStatus.DONE),
        )
