# src/zenpriority/core/errors.py

from __future__ import annotations


class BoardError(Exception):
    """Base class for failures surfaced to the user as the error banner."""


class ConnectivityError(BoardError):
    """Initial load (or reload) of the task list failed."""


class PersistenceError(BoardError):
    """A specific write (insert/update/delete/upsert) was rejected or failed."""


class AIError(BoardError):
    """The language model could not enhance a description or suggest an order."""


class TaskTableError(Exception):
    """
    Raised by task table backends (remote or SQLite) on any failure.

    The store client translates it into ConnectivityError or PersistenceError.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
