from __future__ import annotations

from .connector import (
    ConnectResult,
    RedisConnector,
    StoreConnector,
    get_connector,
    reset_connector_for_testing,
)
from .interface import TaskStore
from .redis_store import RedisTaskStore

__all__ = [
    "ConnectResult",
    "RedisConnector",
    "RedisTaskStore",
    "StoreConnector",
    "TaskStore",
    "get_connector",
    "reset_connector_for_testing",
]
