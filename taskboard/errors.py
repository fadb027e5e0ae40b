from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSPORT = "transport"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.TRANSPORT: 503,
}


class TaskError(Exception):
    """Base for failures the API maps to a specific HTTP status."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class TaskValidationError(TaskError):
    kind = ErrorKind.VALIDATION


class TaskNotFoundError(TaskError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, task_id: str) -> None:
        super().__init__("Task not found")
        self.task_id = task_id


class TaskConflictError(TaskError):
    kind = ErrorKind.CONFLICT


class StoreUnavailableError(TaskError):
    kind = ErrorKind.TRANSPORT


__all__ = [
    "STATUS_BY_KIND",
    "ErrorKind",
    "StoreUnavailableError",
    "TaskConflictError",
    "TaskError",
    "TaskNotFoundError",
    "TaskValidationError",
]
