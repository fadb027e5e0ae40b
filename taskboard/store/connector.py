from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import redis

from taskboard.config import StoreConfig, load_config
from taskboard.errors import StoreUnavailableError
from taskboard.observability import get_json_logger, get_metrics, redact_url

from .interface import TaskStore
from .redis_store import RedisTaskStore


@dataclass(slots=True, frozen=True)
class ConnectResult:
    ok: bool
    error: str | None = None


class StoreConnector(Protocol):
    def ensure_connected(self) -> ConnectResult:
        """Open the store connection once; later calls reuse it."""

    def get_store(self) -> TaskStore:
        """Return a store bound to the live connection."""

    def reset(self) -> None:
        """Drop the memoized connection."""


def _default_client_factory(cfg: StoreConfig) -> Any:
    # decode_responses=True returns str everywhere for easier JSON handling
    return redis.from_url(
        cfg.url,
        decode_responses=True,
        socket_connect_timeout=cfg.connect_timeout_s,
        socket_timeout=cfg.socket_timeout_s,
    )


class RedisConnector(StoreConnector):
    """Lazily opens and memoizes one Redis client for the whole process.

    A failed attempt is logged and reported through ConnectResult; nothing is
    memoized in that case, so the next call tries again.
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        client_factory: Callable[[StoreConfig], Any] | None = None,
    ) -> None:
        self._cfg = config or load_config()
        self._factory = client_factory or _default_client_factory
        self._client: Any | None = None
        self._lock = threading.Lock()
        self._logger = get_json_logger("taskboard.store")

    @property
    def config(self) -> StoreConfig:
        return self._cfg

    def is_connected(self) -> bool:
        return self._client is not None

    def ensure_connected(self) -> ConnectResult:
        if self._client is not None:
            return ConnectResult(ok=True)
        with self._lock:
            if self._client is not None:
                return ConnectResult(ok=True)
            try:
                client = self._factory(self._cfg)
                client.ping()
            except (redis.exceptions.RedisError, ValueError) as exc:
                self._logger.error(
                    "store connection failed",
                    extra={
                        "event": "store_connect_failed",
                        "attributes": {"store_url": self._cfg.url, "error": str(exc)[:200]},
                    },
                )
                get_metrics().increment("store_connect_failures")
                return ConnectResult(ok=False, error=str(exc) or exc.__class__.__name__)
            self._client = client
        self._logger.info(
            "store connected",
            extra={
                "event": "store_connected",
                "attributes": {
                    "store_url": redact_url(self._cfg.url),
                    "connect_timeout_ms": self._cfg.connect_timeout_ms,
                    "socket_timeout_ms": self._cfg.socket_timeout_ms,
                },
            },
        )
        return ConnectResult(ok=True)

    def get_store(self) -> TaskStore:
        if self._client is None:
            raise StoreUnavailableError("Store is not connected")
        return RedisTaskStore(self._client, key_prefix=self._cfg.key_prefix)

    def reset(self) -> None:
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()


# Process-wide connector; created on first use
_CONNECTOR: RedisConnector | None = None


def get_connector() -> RedisConnector:
    global _CONNECTOR
    if _CONNECTOR is None:
        _CONNECTOR = RedisConnector()
    return _CONNECTOR


def reset_connector_for_testing() -> None:
    global _CONNECTOR
    if _CONNECTOR is not None:
        _CONNECTOR.reset()
    _CONNECTOR = None


__all__ = [
    "ConnectResult",
    "RedisConnector",
    "StoreConnector",
    "get_connector",
    "reset_connector_for_testing",
]
