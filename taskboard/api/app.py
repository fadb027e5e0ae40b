from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import redis
from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard.config import TASKS_PATH
from taskboard.errors import StoreUnavailableError, TaskError, TaskNotFoundError, TaskValidationError
from taskboard.models.task import Task, TaskCreate, TaskPatch
from taskboard.observability import (
    configure_uvicorn_logging,
    get_json_logger,
    get_metrics,
    use_request_context,
)
from taskboard.store.connector import StoreConnector
from taskboard.store.interface import TaskStore

TASK_ID_REQUIRED = "Task ID is required"
METHOD_NOT_ALLOWED = "Method not allowed"


def _serialize_task(task: Task) -> dict[str, Any]:
    return task.model_dump(mode="json")


def _validation_message(exc: ValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "invalid request body"


async def _read_json_object(request: Request) -> dict[str, Any]:
    try:
        data = await request.json()
    except ValueError as exc:
        raise TaskValidationError("Request body must be valid JSON") from exc
    if not isinstance(data, dict):
        raise TaskValidationError("Request body must be a JSON object")
    return data


def _require_id(task_id: str | None) -> str:
    tid = (task_id or "").strip()
    if not tid:
        raise TaskValidationError(TASK_ID_REQUIRED)
    return tid


def create_app(connector: StoreConnector) -> FastAPI:
    app = FastAPI(title="taskboard")
    # Configure uvicorn logging at app startup to avoid import-time side effects
    configure_uvicorn_logging()
    logger = get_json_logger("taskboard.api")
    metrics = get_metrics()

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        connector.reset()
        logger.info("api shutdown", extra={"event": "api_shutdown", "service": "api"})

    @app.middleware("http")
    async def _request_context(request: Request, call_next: Any) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        started = time.perf_counter()
        with use_request_context(request_id, request.method, request.url.path):
            try:
                response = await call_next(request)
            except Exception as exc:
                response = _internal_error(exc)
            duration_ms = (time.perf_counter() - started) * 1000.0
            logger.info(
                "task request",
                extra={
                    "event": "task_request",
                    "service": "api",
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 3),
                },
            )
        metrics.increment(
            "task_requests", {"method": request.method, "status": str(response.status_code)}
        )
        response.headers["X-Request-ID"] = request_id
        return response

    # ----------------------------
    # Error mapping
    # ----------------------------

    def _log_error(kind: str, message: str, status_code: int) -> None:
        logger.error(
            "task error",
            extra={
                "event": "task_error",
                "service": "api",
                "error_kind": kind,
                "status_code": status_code,
                "attributes": {"error": message[:200]},
            },
        )
        metrics.increment("task_errors", {"kind": kind})

    def _internal_error(exc: Exception) -> JSONResponse:
        message = str(exc) or exc.__class__.__name__
        logger.exception(
            "task operation failed",
            extra={"event": "task_operation_failed", "service": "api"},
        )
        _log_error("internal", message, 500)
        return JSONResponse(status_code=500, content={"error": message})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        return _internal_error(exc)

    @app.exception_handler(TaskError)
    async def _task_error(request: Request, exc: TaskError) -> JSONResponse:
        _log_error(exc.kind.value, exc.message, exc.status_code)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405, content={"message": METHOD_NOT_ALLOWED}, headers=exc.headers
            )
        if exc.status_code >= 500:
            _log_error("internal", str(exc.detail), exc.status_code)
        return JSONResponse(
            status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers
        )

    @contextmanager
    def _guard() -> Iterator[None]:
        """Map transport failures raised by the store to the transport kind."""
        try:
            yield
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as exc:
            raise StoreUnavailableError(f"Store unavailable: {exc}") from exc

    async def _store() -> TaskStore:
        # Acquired only after request validation so client errors never depend on the store
        result = await asyncio.to_thread(connector.ensure_connected)
        if not result.ok:
            raise StoreUnavailableError(f"Store unavailable: {result.error}")
        return connector.get_store()

    # ----------------------------
    # Operational endpoints
    # ----------------------------

    @app.get("/health")
    async def health() -> dict[str, str]:  # lightweight healthcheck endpoint
        return {"status": "ok"}

    @app.get("/ready")
    async def ready() -> dict[str, str]:
        result = await asyncio.to_thread(connector.ensure_connected)
        if not result.ok:
            raise StoreUnavailableError(f"Store unavailable: {result.error}")
        return {"status": "ok"}

    # ----------------------------
    # Task resource
    # ----------------------------

    @app.get(TASKS_PATH)
    async def list_tasks() -> list[dict[str, Any]]:
        store = await _store()
        with _guard():
            tasks = await asyncio.to_thread(store.list_tasks)
        return [_serialize_task(t) for t in tasks]

    @app.post(TASKS_PATH, status_code=201)
    async def create_task(request: Request) -> JSONResponse:
        body = await _read_json_object(request)
        try:
            candidate = TaskCreate.model_validate(body)
        except ValidationError as exc:
            raise TaskValidationError(_validation_message(exc)) from exc
        store = await _store()
        with _guard():
            task = await asyncio.to_thread(store.create_task, candidate.to_task())
        logger.info(
            "task created",
            extra={
                "event": "task_created",
                "service": "api",
                "task_id": task.id,
                "attributes": {"status": task.status, "title_len": len(task.title)},
            },
        )
        return JSONResponse(status_code=201, content=_serialize_task(task))

    @app.put(TASKS_PATH)
    async def update_task(
        request: Request,
        id_param: str | None = Query(default=None, alias="id"),
    ) -> dict[str, Any]:
        task_id = _require_id(id_param)
        body = await _read_json_object(request)
        try:
            patch = TaskPatch.model_validate(body)
        except ValidationError as exc:
            raise TaskValidationError(_validation_message(exc)) from exc
        store = await _store()
        with _guard():
            task = await asyncio.to_thread(store.update_task, task_id, patch)
        if task is None:
            raise TaskNotFoundError(task_id)
        logger.info(
            "task updated",
            extra={
                "event": "task_updated",
                "service": "api",
                "task_id": task_id,
                "attributes": {"fields": sorted(patch.model_fields_set)},
            },
        )
        return _serialize_task(task)

    @app.delete(TASKS_PATH, status_code=204)
    async def delete_task(
        id_param: str | None = Query(default=None, alias="id"),
    ) -> Response:
        task_id = _require_id(id_param)
        store = await _store()
        with _guard():
            removed = await asyncio.to_thread(store.delete_task, task_id)
        logger.info(
            "task deleted",
            extra={
                "event": "task_deleted",
                "service": "api",
                "task_id": task_id,
                "attributes": {"removed": removed},
            },
        )
        return Response(status_code=204)

    return app


__all__ = ["METHOD_NOT_ALLOWED", "TASKS_PATH", "TASK_ID_REQUIRED", "create_app"]
