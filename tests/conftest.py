# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from todo_app.server.app import create_app
from todo_app.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the server, bootstrap and console.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="todo-test",
        log_level="DEBUG",
        env="test",
        host="127.0.0.1",
        port=4000,
        healthcheck_path="/healthz",
        cors_allow_origins=["*"],
        # Paths (tmp per test run)
        data_dir=tmp_path,
        db_path=tmp_path / "todo.sqlite3",
        # Console client
        api_base_url="http://testserver",
        api_timeout_seconds=5.0,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    """
    Real SQLite store in a temp dir: its correctness is part of what we want to test.
    """
    return TaskStore(settings.db_path)


@pytest.fixture()
def app(store: TaskStore, settings: SimpleNamespace) -> FastAPI:
    return create_app(store, settings)


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
