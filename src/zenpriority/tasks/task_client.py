# src/zenpriority/tasks/task_client.py

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

from ..core.errors import ConnectivityError, PersistenceError, TaskTableError
from ..core.ports import TaskTable
from .task_models import Task, fields_to_row, task_from_row, task_to_row

logger = logging.getLogger(__name__)

SyncListener = Callable[[bool], None]


class SyncStatus:
    """
    Process-wide "a remote call is in flight" signal, for UI feedback only.

    Reference counted: overlapping calls keep it active until the last one
    finishes. Listeners are told about transitions, not every call.
    """

    def __init__(self) -> None:
        self._inflight = 0
        self._listeners: list[SyncListener] = []

    @property
    def active(self) -> bool:
        return self._inflight > 0

    def subscribe(self, listener: SyncListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.active)
            except Exception:
                logger.exception("Sync listener failed.")

    @contextlib.asynccontextmanager
    async def track(self) -> AsyncIterator[None]:
        self._inflight += 1
        if self._inflight == 1:
            self._notify()
        try:
            yield
        finally:
            self._inflight -= 1
            if self._inflight == 0:
                self._notify()


class TaskStoreClient:
    """
    CRUD + list-fetch against the task table, translating wire rows to Task.

    Backend failures come out as ConnectivityError (fetch) or
    PersistenceError (writes). The client never touches the in-memory
    sequence; the controller decides what to apply and when.
    """

    def __init__(self, table: TaskTable, *, sync: SyncStatus | None = None) -> None:
        self._table = table
        self.sync = sync or SyncStatus()

    @property
    def table_name(self) -> str:
        return str(getattr(self._table, "name", "tasks"))

    async def fetch_all(self) -> list[Task]:
        async with self.sync.track():
            try:
                rows = await self._table.select_ordered()
            except TaskTableError as e:
                raise ConnectivityError(f"Could not load tasks: {e}") from e

        tasks: list[Task] = []
        for row in rows:
            if row.get("id") in (None, ""):
                logger.warning("Skipping task row without id: %r", row)
                continue
            tasks.append(task_from_row(row))
        # Backends sort already; keep the contract even if one does not.
        tasks.sort(key=lambda t: t.order_index)
        logger.info("Fetched %d tasks from %s", len(tasks), self.table_name)
        return tasks

    async def insert(self, task: Task) -> None:
        async with self.sync.track():
            try:
                await self._table.insert(task_to_row(task))
            except TaskTableError as e:
                raise PersistenceError(f"Insert of task {task.id} failed: {e}") from e
        logger.info("Inserted task id=%s order_index=%s", task.id, task.order_index)

    async def update(self, task_id: str, fields: dict[str, Any]) -> None:
        row = fields_to_row(fields)
        if not row:
            return
        async with self.sync.track():
            try:
                await self._table.update(task_id, row)
            except TaskTableError as e:
                raise PersistenceError(f"Update of task {task_id} failed: {e}") from e
        logger.info("Updated task id=%s fields=%s", task_id, ",".join(sorted(row)))

    async def remove(self, task_id: str) -> None:
        async with self.sync.track():
            try:
                await self._table.delete(task_id)
            except TaskTableError as e:
                raise PersistenceError(f"Delete of task {task_id} failed: {e}") from e
        logger.info("Deleted task id=%s", task_id)

    async def bulk_replace_order(self, sequence: Sequence[Task]) -> None:
        """Upsert every task with all its fields (full overwrite, keyed by id)."""
        rows = [task_to_row(t) for t in sequence]
        async with self.sync.track():
            try:
                await self._table.upsert(rows)
            except TaskTableError as e:
                raise PersistenceError(f"Saving order of {len(rows)} tasks failed: {e}") from e
        logger.info("Saved order of %d tasks", len(rows))
