# src/todo_app/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2026-01-02T03:04:05.678Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class Task:
    id: int
    title: str
    completed: bool
    created_at: str
    updated_at: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Task:
        """
        Build a Task from the API's JSON shape.

        Raises ValueError/TypeError/KeyError on a payload that is not a task.
        """
        updated_at = data.get("updatedAt")
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            completed=bool(data.get("completed", False)),
            created_at=str(data["createdAt"]),
            updated_at=str(updated_at) if updated_at is not None else None,
        )


@dataclass(frozen=True, slots=True)
class TaskPatch:
    """
    Partial update of a task.

    A field is present when it is not None; absent fields are left untouched.
    """

    title: str | None = None
    completed: bool | None = None

    @property
    def has_title(self) -> bool:
        return self.title is not None

    @property
    def has_completed(self) -> bool:
        return self.completed is not None

    @property
    def is_empty(self) -> bool:
        return not (self.has_title or self.has_completed)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> TaskPatch:
        # Unknown keys (id, createdAt, ... from a full task view) are ignored.
        title = data.get("title")
        completed = data.get("completed")
        return cls(
            title=title if isinstance(title, str) else None,
            completed=completed if isinstance(completed, bool) else None,
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.has_title:
            out["title"] = self.title
        if self.has_completed:
            out["completed"] = self.completed
        return out

    def apply_to(self, task: Task) -> Task:
        """Return `task` with the present fields merged in (no timestamps touched)."""
        return replace(
            task,
            title=task.title if self.title is None else self.title,
            completed=task.completed if self.completed is None else self.completed,
        )


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    completed: int
    active: int

    @classmethod
    def from_tasks(cls, tasks: list[Task]) -> TaskStats:
        done = sum(1 for t in tasks if t.completed)
        return cls(total=len(tasks), completed=done, active=len(tasks) - done)
