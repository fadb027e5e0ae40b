from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

DEFAULT_STORE_URL = "redis://localhost:6379/0"
DEFAULT_BASE_URL = "http://localhost:8000"
TASKS_PATH = "/api/tasks"


@dataclass(slots=True)
class StoreConfig:
    url: str
    key_prefix: str
    connect_timeout_ms: int
    socket_timeout_ms: int

    @property
    def connect_timeout_s(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def socket_timeout_s(self) -> float:
        return self.socket_timeout_ms / 1000.0


def _read_positive_int(e: dict[str, Any], name: str, default: int) -> int:
    raw = (e.get(name) or "").strip()
    try:
        value = int(raw) if raw else default
    except Exception:
        value = default
    return value if value > 0 else default


def load_config(env: dict[str, str] | None = None) -> StoreConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    url = (e.get("TASKBOARD_STORE_URL") or e.get("REDIS_URL") or "").strip() or DEFAULT_STORE_URL
    prefix = (e.get("TASKBOARD_KEY_PREFIX") or "").strip().rstrip(":") or "taskboard"
    return StoreConfig(
        url=url,
        key_prefix=prefix,
        connect_timeout_ms=_read_positive_int(e, "TASKBOARD_CONNECT_TIMEOUT_MS", 10_000),
        socket_timeout_ms=_read_positive_int(e, "TASKBOARD_SOCKET_TIMEOUT_MS", 45_000),
    )


def default_base_url(env: dict[str, str] | None = None) -> str:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    return (e.get("TASKBOARD_BASE_URL") or "").strip() or DEFAULT_BASE_URL


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_STORE_URL",
    "TASKS_PATH",
    "StoreConfig",
    "default_base_url",
    "load_config",
]
