from __future__ import annotations

import threading

from taskboard.errors import TaskConflictError
from taskboard.models.task import Task, TaskPatch
from taskboard.store.connector import ConnectResult, StoreConnector
from taskboard.store.interface import TaskStore


class InMemoryTaskStore(TaskStore):
    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._lock = threading.Lock()

    def create_task(self, task: Task) -> Task:
        with self._lock:
            if task.id in self._tasks:
                raise TaskConflictError(f"Task {task.id} already exists")
            self._tasks[task.id] = task
        return task

    def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def list_tasks(self) -> list[Task]:
        with self._lock:
            return list(self._tasks.values())

    def update_task(self, task_id: str, patch: TaskPatch) -> Task | None:
        with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                return None
            updated = current.merged(patch)
            self._tasks[task_id] = updated
            return updated

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None


class InMemoryConnector(StoreConnector):
    """Connector double; flip `fail_with` to simulate an unreachable store."""

    def __init__(self, store: TaskStore | None = None) -> None:
        self.store = store or InMemoryTaskStore()
        self.fail_with: str | None = None
        self.connect_calls = 0

    def ensure_connected(self) -> ConnectResult:
        self.connect_calls += 1
        if self.fail_with is not None:
            return ConnectResult(ok=False, error=self.fail_with)
        return ConnectResult(ok=True)

    def get_store(self) -> TaskStore:
        return self.store

    def reset(self) -> None:
        pass


__all__ = ["InMemoryConnector", "InMemoryTaskStore"]
