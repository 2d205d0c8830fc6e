# tests/test_sync_controller.py

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi import FastAPI

from todo_app.client.api_client import TodoApiClient
from todo_app.client.sync import SyncController
from todo_app.errors import ApiError, NetworkError
from todo_app.tasks.task_models import TaskPatch

from .fakes import FakeTodoApi, make_task


async def _settle() -> None:
    # Let spawned controller calls run up to their first await.
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_add_toggle_remove_scenario() -> None:
    ctrl = SyncController(FakeTodoApi())
    await ctrl.refresh()
    assert ctrl.tasks == []

    created = await ctrl.add("Write report")
    assert created is not None
    assert [(t.title, t.completed) for t in ctrl.tasks] == [("Write report", False)]

    await ctrl.toggle(created.id)
    assert ctrl.tasks[0].completed is True

    await ctrl.remove(created.id)
    assert ctrl.tasks == []
    assert ctrl.error is None


@pytest.mark.asyncio
async def test_refresh_replaces_list_and_clears_loading() -> None:
    api = FakeTodoApi([make_task(2, "b"), make_task(1, "a")])
    ctrl = SyncController(api)

    await ctrl.refresh()

    assert [t.id for t in ctrl.tasks] == [2, 1]
    assert ctrl.loading is False
    assert ctrl.error is None


@pytest.mark.asyncio
async def test_refresh_sets_loading_while_in_flight() -> None:
    api = FakeTodoApi([make_task(1, "a")])
    api.gated = True
    ctrl = SyncController(api)

    pending = asyncio.create_task(ctrl.refresh())
    await _settle()
    assert ctrl.loading is True

    api.pending[0].set_result(None)
    await pending
    assert ctrl.loading is False


@pytest.mark.asyncio
async def test_refresh_failure_keeps_stale_tasks() -> None:
    api = FakeTodoApi([make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()

    api.fail("list_tasks", NetworkError("Network error: ConnectError"))
    await ctrl.refresh()

    assert [t.id for t in ctrl.tasks] == [1]
    assert ctrl.error == "Network error: ConnectError"
    assert ctrl.loading is False


@pytest.mark.asyncio
async def test_add_blank_title_is_a_noop() -> None:
    api = FakeTodoApi()
    ctrl = SyncController(api)

    assert await ctrl.add("   ") is None
    assert api.calls == []


@pytest.mark.asyncio
async def test_add_waits_for_server_before_inserting() -> None:
    api = FakeTodoApi([make_task(1, "old")])
    api.gated = True
    ctrl = SyncController(api)
    ctrl.tasks = list(api.tasks)

    pending = asyncio.create_task(ctrl.add("  new  "))
    await _settle()
    assert [t.title for t in ctrl.tasks] == ["old"]

    api.pending[0].set_result(None)
    await pending
    assert [t.title for t in ctrl.tasks] == ["new", "old"]
    assert api.calls[0] == ("create_task", ("new", False))


@pytest.mark.asyncio
async def test_add_failure_sets_error_and_leaves_list() -> None:
    api = FakeTodoApi([make_task(1, "old")])
    ctrl = SyncController(api)
    await ctrl.refresh()

    api.fail("create_task", ApiError("Internal Server Error", status=500))
    assert await ctrl.add("new") is None

    assert [t.title for t in ctrl.tasks] == ["old"]
    assert ctrl.error == "Internal Server Error"


@pytest.mark.asyncio
async def test_update_is_optimistic_then_reconciled_with_server() -> None:
    api = FakeTodoApi([make_task(1, "Buy milk")])
    api.gated = True
    ctrl = SyncController(api)
    ctrl.tasks = list(api.tasks)

    pending = asyncio.create_task(ctrl.update(1, TaskPatch(title="Buy oat milk")))
    await _settle()
    assert ctrl.tasks[0].title == "Buy oat milk"
    assert ctrl.tasks[0].updated_at is None

    api.pending[0].set_result(None)
    await pending
    assert ctrl.tasks[0].title == "Buy oat milk"
    assert ctrl.tasks[0].updated_at is not None


@pytest.mark.asyncio
async def test_update_sends_locally_merged_full_view() -> None:
    api = FakeTodoApi([make_task(1, "Buy milk")])
    ctrl = SyncController(api)
    await ctrl.refresh()

    await ctrl.toggle(1)

    name, (task_id, body) = api.calls[-1]
    assert name == "update_task"
    assert task_id == 1
    assert body == {
        "id": 1,
        "title": "Buy milk",
        "completed": True,
        "createdAt": "2026-01-01T00:00:01.000Z",
        "updatedAt": None,
    }


@pytest.mark.asyncio
async def test_failed_toggle_rolls_back_to_previous_snapshot() -> None:
    api = FakeTodoApi([make_task(2, "b"), make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    before = list(ctrl.tasks)

    api.fail("update_task", NetworkError("Network error: ReadTimeout"))
    await ctrl.toggle(1)

    assert ctrl.tasks == before
    assert ctrl.error == "Network error: ReadTimeout"


@pytest.mark.asyncio
async def test_update_unknown_id_does_not_call_api() -> None:
    api = FakeTodoApi([make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.calls.clear()

    await ctrl.update(42, TaskPatch(completed=True))
    await ctrl.toggle(42)

    assert api.calls == []


@pytest.mark.asyncio
async def test_failed_remove_restores_task_at_its_position() -> None:
    api = FakeTodoApi([make_task(3, "c"), make_task(2, "b"), make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    before = list(ctrl.tasks)

    api.fail("delete_task", ApiError("Internal Server Error", status=500))
    await ctrl.remove(2)

    assert ctrl.tasks == before
    assert ctrl.error == "Internal Server Error"


@pytest.mark.asyncio
async def test_failed_remove_reinserts_by_order_after_list_changed() -> None:
    api = FakeTodoApi([make_task(3, "c"), make_task(2, "b"), make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.gated = True

    remove = asyncio.create_task(ctrl.remove(2))
    await _settle()
    add = asyncio.create_task(ctrl.add("new"))
    await _settle()

    api.pending[1].set_result(None)
    await add
    assert [t.title for t in ctrl.tasks] == ["new", "c", "a"]

    api.pending[0].set_exception(ApiError("Internal Server Error", status=500))
    await remove
    assert [t.title for t in ctrl.tasks] == ["new", "c", "b", "a"]
    assert ctrl.error == "Internal Server Error"


@pytest.mark.asyncio
async def test_remove_is_optimistic() -> None:
    api = FakeTodoApi([make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.gated = True

    pending = asyncio.create_task(ctrl.remove(1))
    await _settle()
    assert ctrl.tasks == []

    api.pending[0].set_result(None)
    await pending
    assert ctrl.tasks == []
    assert api.tasks == []


@pytest.mark.asyncio
async def test_next_operation_clears_previous_error() -> None:
    api = FakeTodoApi([make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()

    api.fail("update_task", NetworkError("offline"))
    await ctrl.toggle(1)
    assert ctrl.error == "offline"

    await ctrl.toggle(1)
    assert ctrl.error is None
    assert ctrl.tasks[0].completed is True


@pytest.mark.asyncio
async def test_stale_update_failure_does_not_roll_back_newer_state() -> None:
    api = FakeTodoApi([make_task(1, "orig")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.gated = True

    first = asyncio.create_task(ctrl.update(1, TaskPatch(title="A")))
    await _settle()
    second = asyncio.create_task(ctrl.update(1, TaskPatch(title="B")))
    await _settle()

    # Newer request succeeds first, the older one fails afterwards.
    api.pending[1].set_result(None)
    await second
    api.pending[0].set_exception(NetworkError("timeout"))
    await first

    assert ctrl.tasks[0].title == "B"
    assert ctrl.error is None


@pytest.mark.asyncio
async def test_outdated_success_is_shown_once_nothing_in_flight() -> None:
    api = FakeTodoApi([make_task(1, "orig")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.gated = True

    first = asyncio.create_task(ctrl.update(1, TaskPatch(title="A")))
    await _settle()
    second = asyncio.create_task(ctrl.update(1, TaskPatch(title="B")))
    await _settle()

    # Newer request fails first: back to the last confirmed title, not to "A".
    api.pending[1].set_exception(NetworkError("offline"))
    await second
    assert ctrl.tasks[0].title == "orig"
    assert ctrl.error == "offline"

    # The older request's success arrives with nothing else in flight, so the
    # server's answer is shown.
    api.pending[0].set_result(None)
    await first
    assert ctrl.tasks[0].title == "A"
    assert ctrl.tasks[0].updated_at is not None


@pytest.mark.asyncio
async def test_outdated_success_is_held_back_while_newer_update_in_flight() -> None:
    api = FakeTodoApi([make_task(1, "orig")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.gated = True

    first = asyncio.create_task(ctrl.update(1, TaskPatch(title="A")))
    await _settle()
    second = asyncio.create_task(ctrl.update(1, TaskPatch(title="B")))
    await _settle()

    api.pending[0].set_result(None)
    await first
    assert ctrl.tasks[0].title == "B"

    # The newer one fails: roll back to what the server confirmed last.
    api.pending[1].set_exception(NetworkError("offline"))
    await second
    assert ctrl.tasks[0].title == "A"
    assert ctrl.tasks[0].updated_at is not None
    assert ctrl.error == "offline"


@pytest.mark.asyncio
@pytest.mark.parametrize("order", [(0, 1), (1, 0)])
async def test_overlapping_failed_updates_restore_confirmed_title(order: tuple[int, int]) -> None:
    api = FakeTodoApi([make_task(1, "orig")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.gated = True

    updates = [asyncio.create_task(ctrl.update(1, TaskPatch(title="A")))]
    await _settle()
    updates.append(asyncio.create_task(ctrl.update(1, TaskPatch(title="B"))))
    await _settle()

    for i in order:
        api.pending[i].set_exception(NetworkError("offline"))
        await updates[i]

    assert ctrl.tasks[0].title == "orig"
    assert ctrl.error == "offline"
    assert api.tasks[0].title == "orig"


@pytest.mark.asyncio
async def test_failed_update_does_not_resurrect_removed_task() -> None:
    api = FakeTodoApi([make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()
    api.gated = True

    update = asyncio.create_task(ctrl.toggle(1))
    await _settle()
    remove = asyncio.create_task(ctrl.remove(1))
    await _settle()

    api.pending[1].set_result(None)
    await remove
    api.pending[0].set_exception(NetworkError("timeout"))
    await update

    assert ctrl.tasks == []


@pytest.mark.asyncio
async def test_stats_follow_task_list() -> None:
    api = FakeTodoApi([make_task(3, "c", completed=True), make_task(2, "b"), make_task(1, "a")])
    ctrl = SyncController(api)
    await ctrl.refresh()

    stats = ctrl.stats
    assert (stats.total, stats.completed, stats.active) == (3, 1, 2)


@pytest.mark.asyncio
async def test_controller_against_real_api(app: FastAPI) -> None:
    api = TodoApiClient("http://testserver", transport=httpx.ASGITransport(app=app))
    ctrl = SyncController(api)
    try:
        await ctrl.refresh()
        created = await ctrl.add("Write report")
        assert created is not None

        await ctrl.toggle(created.id)
        assert ctrl.tasks[0].completed is True
        assert ctrl.tasks[0].updated_at is not None

        await ctrl.refresh()
        assert [(t.title, t.completed) for t in ctrl.tasks] == [("Write report", True)]

        await ctrl.remove(created.id)
        await ctrl.refresh()
        assert ctrl.tasks == []

        # Server says 404 -> optimistic removal is rolled back.
        ghost = created
        ctrl.tasks = [ghost]
        await ctrl.remove(ghost.id)
        assert ctrl.tasks == [ghost]
        assert ctrl.error
    finally:
        await api.aclose()
