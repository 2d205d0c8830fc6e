# src/todo_app/server/app.py

"""
FastAPI application exposing the task store as a small REST API.

Endpoints:
    GET    /todos          -> 200, list of tasks (most recent first)
    POST   /todos          -> 201, created task          (400 on empty title)
    PUT    /todos/{id}     -> 200, updated task          (400 bad id, 404 missing)
    DELETE /todos/{id}     -> 204, empty body            (400 bad id, 404 missing)
    GET    /healthz        -> 200, liveness payload      (path configurable)

Every error body is {"message": "..."}; storage failures are logged and
answered with a generic 500.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any

from fastapi import Body, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import get_settings
from ..core.ports import TaskRepo
from ..errors import NotFoundError, StorageError, ValidationError
from ..tasks.task_models import TaskPatch, utc_now_iso

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Todo not found"
# SQLite INTEGER PRIMARY KEY range.
MAX_ROW_ID = 2**63 - 1


def parse_task_id(raw: str) -> int:
    """
    Path ids must parse as a finite number > 0 (else ValidationError).

    A positive non-integral number can never match a row, so it is reported
    as NotFoundError rather than as a bad request. The same holds for ids past
    the largest SQLite rowid.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid id") from None
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("Invalid id")
    if not value.is_integer():
        raise NotFoundError(NOT_FOUND_MESSAGE)
    tid = int(value)
    if tid > MAX_ROW_ID:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return tid


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return _message(400, exc.message or "Bad Request")

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _message(404, exc.message or NOT_FOUND_MESSAGE)

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(
            "Storage failure on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _message(500, "Internal Server Error")

    @app.exception_handler(RequestValidationError)
    async def _bad_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
        return _message(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown routes land here as 404 "Not Found".
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )


def create_app(store: TaskRepo, settings: Any = None) -> FastAPI:
    """
    Build the API around an already-initialized store.

    The store is passed in explicitly (no module-level connection); it is also
    reachable as app.state.store.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=str(getattr(settings, "app_name", "todo-app")),
        description="Minimal To Do REST API",
        version=__version__,
    )
    app.state.store = store
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(getattr(settings, "cors_allow_origins", ["*"])),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    @app.get(str(getattr(settings, "healthcheck_path", "/healthz")))
    def health_check() -> dict[str, Any]:
        return {
            "status": "ok",
            "service": str(getattr(settings, "app_name", "todo-app")),
            "time": utc_now_iso(),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
            "env": str(getattr(settings, "env", "development")),
        }

    @app.get("/todos")
    def list_todos() -> list[dict[str, Any]]:
        return [t.to_json() for t in store.list_tasks()]

    @app.post("/todos", status_code=201)
    def create_todo(payload: dict[str, Any] | None = Body(default=None)) -> dict[str, Any]:
        payload = payload or {}
        title = payload.get("title")
        completed = payload.get("completed", False)
        task = store.create_task(
            title if isinstance(title, str) else "",
            completed=completed if isinstance(completed, bool) else False,
        )
        logger.info("Created todo id=%s", task.id)
        return task.to_json()

    @app.put("/todos/{task_id}")
    def update_todo(
        task_id: str, payload: dict[str, Any] | None = Body(default=None)
    ) -> dict[str, Any]:
        tid = parse_task_id(task_id)
        task = store.update_task(tid, TaskPatch.from_json(payload or {}))
        if task is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("Updated todo id=%s", tid)
        return task.to_json()

    @app.delete("/todos/{task_id}", status_code=204)
    def delete_todo(task_id: str) -> Response:
        tid = parse_task_id(task_id)
        if not store.delete_task(tid):
            raise NotFoundError(NOT_FOUND_MESSAGE)
        logger.info("Deleted todo id=%s", tid)
        return Response(status_code=204)

    return app
