# src/zenpriority/core/board.py

"""
Board controller: owns the BoardState and runs every user action.

Write ordering contract (kept exactly, easy to "improve" by accident):
- create / edit / delete wait for the store to confirm, then change memory.
  A failed write leaves the in-memory sequence untouched.
- move / smart sort change memory first, then persist the whole sequence.
  A failed write shows an error but does not roll the order back; memory
  and store may disagree until the next reload.

There is no lock between actions. Each one reads the sequence as it is when
it applies its change, and overlapping bulk writes land in whatever order
the store answers them.

Every action catches its own failures and turns them into the single
`error` banner message; nothing escapes to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from ..llm.assist import enhance_task_description, suggest_task_order
from ..tasks import ordering
from ..tasks.task_client import TaskStoreClient
from ..tasks.task_models import Task, TaskDraft, new_task_id, now_ms
from .errors import AIError, ConnectivityError, PersistenceError
from .ports import LLMClient
from .state import BoardState, StateObservers

logger = logging.getLogger(__name__)

MSG_LOAD_FAILED = 'Could not connect to the task store. Check the "tasks" table configuration.'
MSG_SAVE_FAILED = "Failed to save the task to the task store."
MSG_DELETE_FAILED = "Failed to delete the task."
MSG_ORDER_NOT_SAVED = "Failed to save the new order."
MSG_AI_SORT_FAILED = "AI could not organize the tasks."
MSG_AI_SORT_NOT_SAVED = "AI organized the tasks, but the new order could not be saved."
MSG_ENHANCE_FAILED = "AI could not enhance the description."

MIN_TASKS_TO_REORDER = 2


class BoardController:
    def __init__(
        self,
        store: TaskStoreClient,
        llm: LLMClient,
        *,
        observers: StateObservers | None = None,
    ) -> None:
        self.store = store
        self.llm = llm
        self.observers = observers or StateObservers()
        self._state = BoardState()
        store.sync.subscribe(self._on_sync)

    # ---- state plumbing ----

    @property
    def state(self) -> BoardState:
        return self._state

    @property
    def tasks(self) -> list[Task]:
        return list(self._state.tasks)

    def _set(self, **changes: Any) -> None:
        if "tasks" in changes:
            changes["tasks"] = tuple(changes["tasks"])
        old = self._state
        new = replace(old, **changes)
        if new == old:
            return
        self._state = new
        self.observers.publish(old, new)

    def _fail(self, message: str, exc: Exception) -> None:
        logger.warning("%s (%s: %s)", message, exc.__class__.__name__, exc)
        self._set(error=message)

    def _on_sync(self, active: bool) -> None:
        self._set(syncing=active)

    def dismiss_error(self) -> None:
        self._set(error=None)

    def find(self, task_id: str) -> Task | None:
        idx = ordering.find_index(self._state.tasks, task_id)
        return None if idx is None else self._state.tasks[idx]

    # ---- actions ----

    async def load(self) -> bool:
        """Fetch everything; on failure keep the current (possibly empty) sequence."""
        self._set(loading=True, error=None)
        try:
            tasks = await self.store.fetch_all()
        except ConnectivityError as e:
            self._fail(MSG_LOAD_FAILED, e)
            return False
        else:
            self._set(tasks=tasks)
            return True
        finally:
            self._set(loading=False)

    async def create(self, draft: TaskDraft) -> Task | None:
        task = Task(
            id=new_task_id(),
            title=draft.title or "Untitled",
            description=draft.description or "",
            priority=draft.priority,
            color=draft.color,
            created_at=now_ms(),
            order_index=ordering.next_order_index(self._state.tasks),
        )
        try:
            await self.store.insert(task)
        except PersistenceError as e:
            self._fail(MSG_SAVE_FAILED, e)
            return None
        self._set(tasks=ordering.append_task(self._state.tasks, task))
        return task

    async def edit(self, task_id: str, fields: dict[str, Any]) -> bool:
        if self.find(task_id) is None:
            logger.warning("Edit of unknown task id=%s ignored", task_id)
            return False
        try:
            # ValueError: non-editable key or out-of-enum priority/color, raised before any remote call.
            await self.store.update(task_id, fields)
        except (PersistenceError, ValueError) as e:
            self._fail(MSG_SAVE_FAILED, e)
            return False
        self._set(tasks=ordering.merge_fields(self._state.tasks, task_id, fields))
        return True

    async def delete(self, task_id: str) -> bool:
        try:
            await self.store.remove(task_id)
        except PersistenceError as e:
            self._fail(MSG_DELETE_FAILED, e)
            return False
        # Survivors keep their order_index; the next reorder closes the gap.
        self._set(tasks=ordering.remove_task(self._state.tasks, task_id))
        return True

    async def move(self, source: int, target: int) -> bool:
        """Drag-and-drop: positions are zero-based."""
        current = self._state.tasks
        n = len(current)
        if n < MIN_TASKS_TO_REORDER or source == target:
            return False
        if not (0 <= source < n and 0 <= target < n):
            logger.warning("Move %s->%s ignored: %d tasks", source, target, n)
            return False

        moved = ordering.move(current, source, target)
        self._set(tasks=moved)
        try:
            await self.store.bulk_replace_order(moved)
        except PersistenceError as e:
            self._fail(MSG_ORDER_NOT_SAVED, e)
            return False
        return True

    async def smart_sort(self) -> bool:
        """Ask the model for an order, apply it, then save the whole sequence."""
        if len(self._state.tasks) < MIN_TASKS_TO_REORDER or self._state.ai_busy:
            return False

        self._set(ai_busy=True)
        try:
            snapshot = list(self._state.tasks)
            try:
                ids = await asyncio.to_thread(suggest_task_order, self.llm, snapshot)
            except AIError as e:
                self._fail(MSG_AI_SORT_FAILED, e)
                return False

            sorted_tasks = ordering.apply_id_order(self._state.tasks, ids)
            self._set(tasks=sorted_tasks)
            try:
                await self.store.bulk_replace_order(sorted_tasks)
            except PersistenceError as e:
                self._fail(MSG_AI_SORT_NOT_SAVED, e)
                return False
            return True
        finally:
            self._set(ai_busy=False)

    async def enhance_description(self, title: str) -> str | None:
        """Suggested description for `title`; None when refused or failed."""
        if not (title or "").strip():
            return None
        try:
            return await asyncio.to_thread(enhance_task_description, self.llm, title)
        except AIError as e:
            self._fail(MSG_ENHANCE_FAILED, e)
            return None
