# src/todo_app/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the server and the client.

The HTTP layer depends on TaskRepo, the SyncController on TodoApi.
This keeps storage/transport swappable and makes testing easier.
"""

from typing import Any, Protocol

from ..tasks.task_models import Task, TaskPatch


class TaskRepo(Protocol):
    """Server-side persistence used by the REST endpoints."""

    def list_tasks(self) -> list[Task]: ...
    def create_task(self, title: str, completed: bool = False) -> Task: ...
    def update_task(self, task_id: int, patch: TaskPatch) -> Task | None: ...
    def delete_task(self, task_id: int) -> bool: ...


class TodoApi(Protocol):
    """
    Client-side view of the REST API.

    update_task receives the JSON body to send (the controller sends the
    locally merged full task view); delete_task raises NotFoundError rather
    than returning False.
    """

    async def list_tasks(self) -> list[Task]: ...
    async def create_task(self, title: str, completed: bool = False) -> Task: ...
    async def update_task(self, task_id: int, body: dict[str, Any]) -> Task: ...
    async def delete_task(self, task_id: int) -> None: ...
