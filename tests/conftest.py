from __future__ import annotations

import os
import time
import uuid
from collections.abc import Callable, Generator

import pytest
from fastapi import FastAPI

from taskboard.observability import reset_metrics
from tests.helpers.store import InMemoryConnector


def _wait_until(timeout_s: float, pause_s: float, check: Callable[[], bool]) -> bool:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if check():
            return True
        time.sleep(pause_s)
    return False


def _redis_ping(url: str) -> bool:
    try:
        import redis

        r = redis.Redis.from_url(url, socket_connect_timeout=0.5)
        return bool(r.ping())
    except Exception:
        return False


def _local_redis_available() -> bool:
    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    return _redis_ping(url)


@pytest.fixture(scope="session")
def redis_url() -> str:
    """Provide a reachable Redis URL: REDIS_URL first, then localhost:6379."""
    env_url = os.getenv("REDIS_URL")
    if env_url and _wait_until(5.0, 0.2, lambda: _redis_ping(env_url)):
        return env_url
    local_url = "redis://localhost:6379/0"
    if _wait_until(1.0, 0.2, lambda: _redis_ping(local_url)):
        return local_url
    pytest.skip("Redis not available; set REDIS_URL or start local Redis")


@pytest.fixture()
def unique_prefix() -> str:
    return f"testtasks:{uuid.uuid4()}"


@pytest.fixture(autouse=True)
def _fresh_metrics() -> Generator[None, None, None]:
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def connector() -> InMemoryConnector:
    return InMemoryConnector()


@pytest.fixture()
def app(connector: InMemoryConnector) -> FastAPI:
    from taskboard.api.app import create_app

    return create_app(connector)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-skip tests that need a Redis server when none is reachable."""
    if _local_redis_available():
        return
    for item in items:
        fixt_names = set(getattr(item, "fixturenames", []) or [])
        if "redis_url" in fixt_names:
            item.add_marker(
                pytest.mark.skip(reason="Redis not available; set REDIS_URL or start local Redis")
            )
