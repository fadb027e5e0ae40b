from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from taskboard.config import TASKS_PATH
from taskboard.models.task import DEFAULT_STATUS, TASK_STATUSES
from taskboard.observability import get_json_logger

FILTER_ALL = "all"
# Display order of the filter bar
FILTERS: tuple[str, ...] = (FILTER_ALL, "done", "in-progress", "under-review")


@dataclass
class BoardState:
    tasks: list[dict[str, Any]] = field(default_factory=list)
    title: str = ""
    description: str = ""
    filter: str = FILTER_ALL
    loading: bool = False
    selected: dict[str, Any] | None = None
    popup_open: bool = False


class TaskBoard:
    """Client-side view state over the task API.

    Policies kept on purpose:
    - add refetches the whole list to pick up the server-generated id
    - update_status patches the one task in place without a refetch
    - delete closes the popup and refetches
    Failures are logged on the client logger and never raised.
    """

    def __init__(self, http: httpx.Client, *, path: str = TASKS_PATH) -> None:
        self._http = http
        self._path = path
        self.state = BoardState()
        self._logger = get_json_logger("taskboard.client")

    @classmethod
    def connect(cls, base_url: str, *, timeout: float = 10.0) -> TaskBoard:
        return cls(httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout))

    def close(self) -> None:
        self._http.close()

    # ----- derived view -----
    @property
    def can_add(self) -> bool:
        return not self.state.loading

    def visible_tasks(self) -> list[dict[str, Any]]:
        wanted = self.state.filter
        return [t for t in self.state.tasks if wanted == FILTER_ALL or t.get("status") == wanted]

    def set_filter(self, value: str) -> None:
        if value not in FILTERS:
            raise ValueError(f"unknown filter {value!r}; expected one of {', '.join(FILTERS)}")
        self.state.filter = value

    def set_inputs(self, title: str, description: str = "") -> None:
        self.state.title = title
        self.state.description = description

    # ----- popup -----
    def select(self, task: dict[str, Any]) -> None:
        self.state.selected = task
        self.state.popup_open = True

    def cancel(self) -> None:
        self.state.popup_open = False

    # ----- remote operations -----
    def _log_failure(self, action: str, exc: Exception) -> None:
        self._logger.error(
            "task client error",
            extra={"event": "client_error", "attributes": {"action": action, "error": str(exc)}},
        )

    def fetch_all(self) -> bool:
        try:
            resp = self._http.get(self._path)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._log_failure("fetch", exc)
            return False
        if not isinstance(data, list):
            self._log_failure("fetch", ValueError("expected a list of tasks"))
            return False
        self.state.tasks = data
        return True

    def add(self) -> bool:
        if not self.state.title.strip():
            return False
        self.state.loading = True
        payload = {
            "title": self.state.title,
            "description": self.state.description,
            "status": DEFAULT_STATUS,
        }
        ok = False
        try:
            resp = self._http.post(self._path, json=payload)
            resp.raise_for_status()
            ok = self.fetch_all()
        except httpx.HTTPError as exc:
            self._log_failure("add", exc)
        self.state.loading = False
        self.state.title = ""
        self.state.description = ""
        return ok

    def update_status(self, task_id: str | None, status: str) -> bool:
        if not task_id:
            self._logger.error("task id is missing", extra={"event": "client_error"})
            return False
        if status not in TASK_STATUSES:
            self._logger.error(
                "unknown status",
                extra={"event": "client_error", "attributes": {"status": status}},
            )
            return False
        self.state.loading = True
        ok = False
        try:
            resp = self._http.put(self._path, params={"id": task_id}, json={"status": status})
            resp.raise_for_status()
            self.state.tasks = [
                {**t, "status": status} if t.get("id") == task_id else t for t in self.state.tasks
            ]
            selected = self.state.selected
            if selected is not None and selected.get("id") == task_id:
                self.state.selected = {**selected, "status": status}
            ok = True
        except httpx.HTTPError as exc:
            self._log_failure("update_status", exc)
        self.state.loading = False
        self.state.popup_open = False
        return ok

    def delete(self, task_id: str | None) -> bool:
        if not task_id:
            self._logger.error("task id is undefined", extra={"event": "client_error"})
            return False
        try:
            resp = self._http.delete(self._path, params={"id": task_id})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            self._log_failure("delete", exc)
            return False
        self.state.popup_open = False
        return self.fetch_all()


__all__ = ["FILTERS", "FILTER_ALL", "BoardState", "TaskBoard"]
