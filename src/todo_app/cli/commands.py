# src/todo_app/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import cast

from ..core.state import ConsoleState
from ..tasks.task_models import TaskPatch

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[ConsoleState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[ConsoleState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

EMPTY_LIST_TEXT = "No tasks yet. Add your first task above!"


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: ConsoleState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Console command /%s args=%s", name, args)
        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Quit the console.")
        lines.append("Plain text (without a slash) adds a task.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def render_stats(state: ConsoleState) -> str:
    s = state.controller.stats
    return f"To Do  [Total: {s.total} | Done: {s.completed} | Active: {s.active}]"


def render_tasks(state: ConsoleState) -> str:
    ctrl = state.controller
    lines = [render_stats(state)]
    if ctrl.error:
        lines.append(f"Error: {ctrl.error}")
    if ctrl.loading:
        lines.append("Loading...")
    elif not ctrl.tasks:
        lines.append(EMPTY_LIST_TEXT)
    else:
        for t in ctrl.tasks:
            mark = "x" if t.completed else " "
            lines.append(f"  [{mark}] #{t.id} {t.title}")
    return "\n".join(lines)


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        value = int(args[0].lstrip("#"))
    except ValueError:
        return None
    return value if value > 0 else None


# ---- handlers ----


async def cmd_help(state: ConsoleState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: ConsoleState, args: list[str]) -> str:
    return render_tasks(state)


async def cmd_refresh(
    state: ConsoleState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if emit:
        with contextlib.suppress(Exception):
            emit("Loading...")
    await state.controller.refresh()
    return render_tasks(state)


async def cmd_stats(state: ConsoleState, args: list[str]) -> str:
    return render_stats(state)


async def cmd_add(state: ConsoleState, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /add <title>"
    await state.controller.add(title)
    return render_tasks(state)


async def cmd_done(state: ConsoleState, args: list[str]) -> str:
    """
    /done <id>  -> toggle completion of a task
    """
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /done <id>"
    if state.controller.find(task_id) is None:
        return f"No task with id {task_id}."
    await state.controller.toggle(task_id)
    return render_tasks(state)


async def cmd_edit(state: ConsoleState, args: list[str]) -> str:
    """
    /edit <id> <new title>  -> rename a task (unchanged titles are skipped)
    """
    task_id = _parse_id(args)
    title = " ".join(args[1:]).strip()
    if task_id is None or not title:
        return "Usage: /edit <id> <new title>"
    current = state.controller.find(task_id)
    if current is None:
        return f"No task with id {task_id}."
    if title == current.title:
        return render_tasks(state)
    await state.controller.update(task_id, TaskPatch(title=title))
    return render_tasks(state)


async def cmd_rm(state: ConsoleState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /rm <id>"
    await state.controller.remove(task_id)
    return render_tasks(state)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the task list.", aliases=["ls"])
registry.register("refresh", cmd_refresh, help_text="Reload the list from the server.", aliases=["r"])
registry.register("stats", cmd_stats, help_text="Show total/done/active counts.")
registry.register("add", cmd_add, help_text="Add a task: /add <title>.", aliases=["a"])
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle", "t"])
registry.register("edit", cmd_edit, help_text="Rename a task: /edit <id> <new title>.", aliases=["e"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del", "delete"])
