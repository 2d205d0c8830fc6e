# src/todo_app/errors.py

"""
Error taxonomy shared by the store, the HTTP boundary and the client.

Server side:
- ValidationError -> 400
- NotFoundError   -> 404
- StorageError    -> 500 (details are logged, never returned)

Client side additionally raises ApiError (any non-2xx with a structured body)
and NetworkError (transport failure or a non-2xx without a structured body).
"""

from __future__ import annotations


class TodoError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str = "", *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class ValidationError(TodoError):
    """Rejected input (e.g. a title that is empty after trimming)."""


class NotFoundError(TodoError):
    """No task exists for the requested id."""


class StorageError(TodoError):
    """The underlying SQLite database failed."""


class ApiError(TodoError):
    """Non-2xx response from the REST API."""


class NetworkError(TodoError):
    """Request never produced a usable response."""
