# src/todo_app/cli/main.py

"""
CLI entrypoint.

    todo-app serve      run the REST API under uvicorn
    todo-app console    run the interactive console client against the API

Initializes logging from settings, then hands over to the chosen mode.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import logging

from ..cli.bootstrap import create_console_state, create_server_app
from ..config import get_settings, normalize_base_url
from ..core.state import ConsoleState
from ..logging_setup import level_from_name, setup_logging
from .console import run_console_loop

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo-app", description="Minimal To Do app.")
    sub = parser.add_subparsers(dest="mode")

    serve = sub.add_parser("serve", help="Run the REST API server.")
    serve.add_argument("--host", default=None, help="Bind address (default: TODO_HOST).")
    serve.add_argument("--port", type=int, default=None, help="Port (default: TODO_PORT).")

    console = sub.add_parser("console", help="Run the interactive console client.")
    console.add_argument("--api-base", default=None, help="API base URL (default: TODO_API_BASE).")

    return parser


def _serve(settings) -> None:
    import uvicorn

    app = create_server_app(settings=settings)
    logger.info("Serving %s on %s:%s (env=%s)", settings.app_name, settings.host, settings.port, settings.env)
    # log_config=None: uvicorn logs flow through our root handlers.
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


async def _shutdown(state: ConsoleState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    api = state.api
    if api is None or not hasattr(api, "aclose"):
        return
    try:
        await api.aclose()
    except Exception:
        logger.debug("API client close failed.", exc_info=True)


async def _console(settings) -> None:
    state = create_console_state(settings=settings)
    try:
        await run_console_loop(state)
    finally:
        await _shutdown(state)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    if args.mode == "serve":
        overrides = {}
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port
        settings = dataclasses.replace(settings, **overrides)
    elif args.mode == "console" and args.api_base:
        settings = dataclasses.replace(settings, api_base_url=normalize_base_url(args.api_base))

    console_level = level_from_name(settings.log_level)
    # The console prints its own output; keep its stderr logs to warnings.
    if args.mode != "serve":
        console_level = max(console_level, logging.WARNING)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (%s)...", settings.app_name, args.mode or "console")

    if args.mode == "serve":
        _serve(settings)
    else:
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(_console(settings))

    logger.info("Bye.")


if __name__ == "__main__":
    main()
