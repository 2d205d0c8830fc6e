# src/todo_app/cli/console.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..core.state import ConsoleState
from .commands import registry as command_registry
from .commands import render_tasks

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def handle_line(state: ConsoleState, line: str) -> str | None:
    """
    Route one console line.

    Slash lines go to the command registry; any other non-empty text adds a task.
    Returns the text to print (None for nothing).
    """
    line = line.strip()
    if not line:
        return None

    if line.lower() in ("/exit", "/quit"):
        state.running = False
        return None

    if not line.startswith("/"):
        line = f"/add {line}"

    return await command_registry.handle(state, line, emit=_print_ts)


async def run_console_loop(state: ConsoleState) -> None:
    logger.info("Console started (api=%s).", getattr(state.settings, "api_base_url", "?"))
    _print_ts("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    await state.controller.refresh()
    print(render_tasks(state), flush=True)

    while state.running:
        try:
            user_input = await asyncio.to_thread(input, ">>> ")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        try:
            reply = await handle_line(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            print(reply, flush=True)

    logger.info("Console finished.")
