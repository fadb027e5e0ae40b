from __future__ import annotations

import json
from typing import Any

from taskboard.observability import (
    Metrics,
    get_json_logger,
    redact_url,
    use_request_context,
)


def _parse_json_lines(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.strip().splitlines() if line.strip()]


def test_json_logger_redacts_and_formats(capsys: Any, monkeypatch: Any) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger = get_json_logger("obs-test")
    logger.setLevel(20)  # INFO
    logger.info(
        "hello",
        extra={
            "event": "store_connected",
            "attributes": {
                "store_url": "redis://user:hunter2@db:6379/0",
                "password": "hunter2",
                "safe": "ok",
            },
        },
    )

    lines = _parse_json_lines(capsys.readouterr().out)
    assert len(lines) == 1
    rec = lines[0]
    assert rec["msg"] == "hello"
    assert rec["level"] == "info"
    assert rec["event"] == "store_connected"
    attributes = rec["attributes"]
    assert attributes["safe"] == "ok"
    assert attributes["password"] == "[REDACTED]"
    assert attributes["store_url"] == "redis://user:[REDACTED]@db:6379/0"


def test_request_context_is_merged(capsys: Any, monkeypatch: Any) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger = get_json_logger("obs-test-ctx")
    logger.setLevel(20)
    with use_request_context("req-1", "GET", "/api/tasks"):
        logger.info("inside")
    logger.info("outside")

    inside, outside = _parse_json_lines(capsys.readouterr().out)
    assert inside["request_id"] == "req-1"
    assert inside["method"] == "GET"
    assert inside["path"] == "/api/tasks"
    assert "request_id" not in outside


def test_redact_url_leaves_plain_urls_alone() -> None:
    assert redact_url("redis://localhost:6379/0") == "redis://localhost:6379/0"
    assert redact_url("redis://:pw@h:1/0") == "redis://:[REDACTED]@h:1/0"


def test_metrics_counters_increment_and_snapshot() -> None:
    metrics = Metrics()
    metrics.increment("task_requests", {"method": "GET"}, 2)
    metrics.increment("task_requests", {"method": "GET"})

    snap = metrics.snapshot()
    entry = next(
        e for e in snap if e["name"] == "task_requests" and e["labels"].get("method") == "GET"
    )
    assert entry["value"] == 3
    assert metrics.value("task_requests", {"method": "GET"}) == 3
    assert metrics.value("task_requests", {"method": "PUT"}) == 0
