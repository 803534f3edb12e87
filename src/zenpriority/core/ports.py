# src/zenpriority/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the task table backend and the LLM provider swappable and makes
testing easier.
"""

from typing import Any, Iterable, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.

TaskRow = dict[str, Any]
# Wire representation of one task: snake_case columns of the "tasks" table.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class TaskTable(Protocol):
    """
    Remote relational table of task rows.

    Every method raises TaskTableError on failure. Durability and
    transactions are the backend's business.
    """

    name: str

    async def select_ordered(self) -> list[TaskRow]: ...
    async def insert(self, row: TaskRow) -> None: ...
    async def update(self, task_id: str, fields: TaskRow) -> None: ...
    async def delete(self, task_id: str) -> None: ...
    async def upsert(self, rows: list[TaskRow]) -> None: ...
    async def aclose(self) -> None: ...
