# src/todo_app/client/sync.py

from __future__ import annotations

"""
Client-side list state synchronized against the REST API.

The controller keeps an in-memory mirror of the server's list:
- refresh() replaces it wholesale,
- add() prepends only after the server confirms,
- update()/toggle()/remove() apply locally first (optimistic), then reconcile
  with the server's answer or roll back on failure.

Every mutation of a task takes the next per-task sequence number. A failure
is rolled back only when it belongs to the newest mutation of that task, and
then to the last state the server confirmed for it. A success always becomes
the confirmed state, but an outdated one is shown only once nothing else for
that task is still in flight. Removal rollbacks reinsert the task by the
server's ordering.
"""

import logging

from ..core.ports import TodoApi
from ..errors import TodoError
from ..tasks.task_models import Task, TaskPatch, TaskStats

logger = logging.getLogger(__name__)


def _error_text(exc: Exception, fallback: str) -> str:
    return str(exc).strip() or fallback


class SyncController:
    def __init__(self, api: TodoApi) -> None:
        self._api = api
        self.tasks: list[Task] = []
        self.loading: bool = False
        self.error: str | None = None
        self._seq: dict[int, int] = {}
        self._inflight: dict[int, int] = {}
        # Last state the server answered with, per task id.
        self._confirmed: dict[int, Task] = {}

    # ---- derived state ----

    @property
    def stats(self) -> TaskStats:
        return TaskStats.from_tasks(self.tasks)

    def find(self, task_id: int) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    # ---- fencing helpers ----

    def _begin(self, task_id: int) -> int:
        seq = self._seq.get(task_id, 0) + 1
        self._seq[task_id] = seq
        self._inflight[task_id] = self._inflight.get(task_id, 0) + 1
        return seq

    def _settle(self, task_id: int) -> None:
        left = self._inflight.get(task_id, 1) - 1
        if left > 0:
            self._inflight[task_id] = left
        else:
            self._inflight.pop(task_id, None)

    def _is_latest(self, task_id: int, seq: int) -> bool:
        return self._seq.get(task_id) == seq

    def _replace(self, task_id: int, task: Task) -> None:
        self.tasks = [task if t.id == task_id else t for t in self.tasks]

    def _insert_ordered(self, task: Task) -> None:
        """Insert keeping the server's order (created_at DESC, id DESC)."""
        key = (task.created_at, task.id)
        index = next(
            (i for i, t in enumerate(self.tasks) if (t.created_at, t.id) < key),
            len(self.tasks),
        )
        self.tasks = [*self.tasks[:index], task, *self.tasks[index:]]

    # ---- operations ----

    async def refresh(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.tasks = list(await self._api.list_tasks())
            self._confirmed = {t.id: t for t in self.tasks}
            logger.debug("Refreshed %d tasks", len(self.tasks))
        except TodoError as e:
            # Stale tasks stay visible.
            self.error = _error_text(e, "Failed to load todos")
            logger.info("Refresh failed: %s", self.error)
        finally:
            self.loading = False

    async def add(self, title: str) -> Task | None:
        clean = (title or "").strip()
        if not clean:
            return None

        self.error = None
        try:
            created = await self._api.create_task(clean, completed=False)
        except TodoError as e:
            self.error = _error_text(e, "Failed to add todo")
            logger.info("Add failed: %s", self.error)
            return None

        self._confirmed[created.id] = created
        self.tasks = [created, *self.tasks]
        return created

    async def update(self, task_id: int, patch: TaskPatch) -> None:
        current = self.find(task_id)
        if current is None:
            logger.debug("Update ignored, unknown task id=%s", task_id)
            return

        self.error = None
        merged = patch.apply_to(current)
        self._replace(task_id, merged)
        seq = self._begin(task_id)

        try:
            updated = await self._api.update_task(task_id, merged.to_json())
        except TodoError as e:
            self._settle(task_id)
            if not self._is_latest(task_id, seq):
                logger.debug("Discarding stale update failure id=%s seq=%s", task_id, seq)
                return
            # Roll back to what the server last confirmed, not to another
            # request's optimistic merge.
            self._replace(task_id, self._confirmed.get(task_id, current))
            self.error = _error_text(e, "Failed to update todo")
            logger.info("Update rolled back id=%s: %s", task_id, self.error)
            return

        self._settle(task_id)
        self._confirmed[task_id] = updated
        if not self._is_latest(task_id, seq) and task_id in self._inflight:
            logger.debug("Discarding stale update response id=%s seq=%s", task_id, seq)
            return
        self._replace(task_id, updated)

    async def toggle(self, task_id: int) -> None:
        target = self.find(task_id)
        if target is None:
            return
        await self.update(task_id, TaskPatch(completed=not target.completed))

    async def remove(self, task_id: int) -> None:
        previous = self.find(task_id)

        self.error = None
        self.tasks = [t for t in self.tasks if t.id != task_id]
        seq = self._begin(task_id)

        try:
            await self._api.delete_task(task_id)
        except TodoError as e:
            self._settle(task_id)
            if not self._is_latest(task_id, seq):
                logger.debug("Discarding stale delete failure id=%s seq=%s", task_id, seq)
                return
            restored = self._confirmed.get(task_id, previous)
            if restored is not None and self.find(task_id) is None:
                self._insert_ordered(restored)
            self.error = _error_text(e, "Failed to delete todo")
            logger.info("Delete rolled back id=%s: %s", task_id, self.error)
            return

        self._settle(task_id)
        self._confirmed.pop(task_id, None)
