# src/zenpriority/core/state.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..tasks.task_models import Task

if TYPE_CHECKING:
    from ..tasks.task_client import TaskStoreClient
    from .board import BoardController
    from .ports import LLMClient, TaskTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BoardState:
    """
    Everything the UI renders, as one immutable snapshot.

    tasks:    the sequence; list position is the display order
    loading:  the initial fetch (or a reload) is outstanding
    syncing:  at least one remote call is outstanding
    ai_busy:  a smart sort is outstanding
    error:    the single banner message (None when dismissed)
    """

    tasks: tuple[Task, ...] = ()
    loading: bool = False
    syncing: bool = False
    ai_busy: bool = False
    error: str | None = None


StateListener = Callable[[BoardState, BoardState], None]
# Called with (old, new) after every state change.


class StateObservers:
    """UI bindings subscribe here; the controller publishes every transition."""

    def __init__(self) -> None:
        self._listeners: list[StateListener] = []

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, old: BoardState, new: BoardState) -> None:
        for listener in list(self._listeners):
            try:
                listener(old, new)
            except Exception:
                logger.exception("State listener failed.")


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    llm: LLMClient
    table: TaskTable
    store: TaskStoreClient
    board: BoardController
