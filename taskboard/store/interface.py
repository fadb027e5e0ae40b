from __future__ import annotations

from typing import Protocol

from taskboard.models.task import Task, TaskPatch


class TaskStore(Protocol):
    """Minimal pluggable Task store.

    Keep this tiny so the document backend can be swapped without changing the API.
    """

    def create_task(self, task: Task) -> Task:
        """Persist a new Task. Raises TaskConflictError if its id is taken."""

    def get_task(self, task_id: str) -> Task | None:
        """Return the Task with this id, or None."""

    def list_tasks(self) -> list[Task]:
        """Return every Task in creation order."""

    def update_task(self, task_id: str, patch: TaskPatch) -> Task | None:
        """Merge a patch onto a stored Task. Returns None if the id is unknown."""

    def delete_task(self, task_id: str) -> bool:
        """Remove a Task. Returns whether anything was removed."""


__all__ = ["TaskStore"]
