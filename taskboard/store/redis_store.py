from __future__ import annotations

import json
from typing import Any, cast

from redis.exceptions import WatchError

from taskboard.errors import TaskConflictError
from taskboard.models.task import Task, TaskPatch

from .interface import TaskStore


class RedisTaskStore(TaskStore):
    """Redis-backed Task document store.

    Data structures:
    - Hash per task: key `{prefix}:task:{id}` with field `json`
    - Sorted set index for natural ordering: key `{prefix}:tasks`,
      score=created_at epoch seconds, member=task_id
    """

    def __init__(self, client: Any, *, key_prefix: str = "taskboard") -> None:
        # Expects a client created with decode_responses=True
        self._redis = client
        self._prefix = key_prefix.rstrip(":")

    # key helpers
    def _task_key(self, task_id: str) -> str:
        return f"{self._prefix}:task:{task_id}"

    def _index_key(self) -> str:
        return f"{self._prefix}:tasks"

    @staticmethod
    def _dump(task: Task) -> str:
        return json.dumps(task.model_dump(mode="json"), separators=(",", ":"))

    @staticmethod
    def _load(raw: str | bytes | None) -> Task | None:
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return Task.model_validate(json.loads(raw))

    def create_task(self, task: Task) -> Task:
        key = self._task_key(task.id)
        # Document and index entry land in one MULTI
        with self._redis.pipeline() as p:
            try:
                p.watch(key)
                if p.exists(key):
                    raise TaskConflictError(f"Task {task.id} already exists")
                p.multi()
                p.hset(key, mapping={"json": self._dump(task)})
                p.zadd(self._index_key(), {task.id: task.created_at.timestamp()})
                p.execute()
            except WatchError as exc:
                raise TaskConflictError(f"Task {task.id} already exists") from exc
        return task

    def get_task(self, task_id: str) -> Task | None:
        raw = cast(str | None, self._redis.hget(self._task_key(task_id), "json"))
        return self._load(raw)

    def list_tasks(self) -> list[Task]:
        ids = cast(list[str], self._redis.zrange(self._index_key(), 0, -1))
        if not ids:
            return []
        p = self._redis.pipeline()
        for tid in ids:
            p.hget(self._task_key(tid), "json")
        result: list[Task] = []
        for raw in p.execute():
            # Deleted between ZRANGE and HGET
            task = self._load(raw)
            if task is not None:
                result.append(task)
        return result

    def update_task(self, task_id: str, patch: TaskPatch) -> Task | None:
        key = self._task_key(task_id)
        with self._redis.pipeline() as p:
            while True:
                try:
                    p.watch(key)
                    current = self._load(p.hget(key, "json"))
                    if current is None:
                        return None
                    updated = current.merged(patch)
                    p.multi()
                    p.hset(key, mapping={"json": self._dump(updated)})
                    p.execute()
                    return updated
                except WatchError:
                    # Changed or deleted concurrently; re-read and try again
                    continue

    def delete_task(self, task_id: str) -> bool:
        p = self._redis.pipeline()
        p.delete(self._task_key(task_id))
        p.zrem(self._index_key(), task_id)
        res = p.execute()
        return bool(sum(int(x) for x in res))


__all__ = ["RedisTaskStore"]
