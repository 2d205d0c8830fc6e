# src/todo_app/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the TaskStore into the FastAPI app (server),
- wires the API client into the SyncController (console).
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from ..client.api_client import TodoApiClient
from ..client.sync import SyncController
from ..config import get_settings
from ..core.state import ConsoleState
from ..server.app import create_app
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_server_app(*, settings=None) -> FastAPI:
    """
    Build the API with a freshly initialized store.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)
    store = TaskStore(settings.db_path)
    return create_app(store, settings)


def create_console_state(*, settings=None, api=None) -> ConsoleState:
    """
    Create ConsoleState from the provided settings.

    `api` may be injected (tests); otherwise an HTTP client for settings.api_base_url is built.
    """
    if settings is None:
        settings = get_settings()

    if api is None:
        api = TodoApiClient(
            settings.api_base_url,
            timeout=float(getattr(settings, "api_timeout_seconds", 10.0)),
        )
        logger.info("Console client targets %s", api.base_url)

    return ConsoleState(settings=settings, controller=SyncController(api), api=api)
