from __future__ import annotations

import datetime as _dt
import uuid
from typing import Any, Literal, get_args

from pydantic import BaseModel, Field, field_validator

TaskStatus = Literal["in-progress", "done", "under-review"]
TASK_STATUSES: tuple[str, ...] = get_args(TaskStatus)
DEFAULT_STATUS: TaskStatus = "in-progress"


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.UTC)


def _require_title(value: str) -> str:
    v = value.strip()
    if not v:
        raise ValueError("title must be non-empty")
    return v


class Task(BaseModel):
    """A Task document as persisted in the store.

    - `id` is assigned once at creation and never changes
    - `created_at` orders the collection; `updated_at` moves on every update
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str = ""
    status: TaskStatus = DEFAULT_STATUS
    created_at: _dt.datetime = Field(default_factory=_utcnow)
    updated_at: _dt.datetime = Field(default_factory=_utcnow)

    def merged(self, patch: TaskPatch) -> Task:
        changes: dict[str, Any] = patch.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = _utcnow()
        return self.model_copy(update=changes)


class TaskCreate(BaseModel):
    """Candidate Task accepted by the create operation.

    Unknown fields (including a caller-supplied `id`) are ignored.
    """

    title: str
    description: str = ""
    status: TaskStatus = DEFAULT_STATUS

    @field_validator("title")
    @classmethod
    def _title_non_empty(cls, value: str) -> str:
        return _require_title(value)

    def to_task(self) -> Task:
        return Task(title=self.title, description=self.description, status=self.status)


class TaskPatch(BaseModel):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None

    @field_validator("title")
    @classmethod
    def _title_non_empty(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _require_title(value)


__all__ = ["DEFAULT_STATUS", "TASK_STATUSES", "Task", "TaskCreate", "TaskPatch", "TaskStatus"]
