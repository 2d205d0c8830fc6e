# src/todo_app/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..client.sync import SyncController


@dataclass
class ConsoleState:
    """Everything a console command handler may touch."""

    # Store Settings on the state for easy access in command handlers.
    settings: Any

    controller: SyncController
    # The object the controller talks to (closed on shutdown when it supports it).
    api: Any = None

    running: bool = True
