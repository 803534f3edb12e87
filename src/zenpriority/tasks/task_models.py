# src/zenpriority/tasks/task_models.py

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"title", "description", "priority", "color"})


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_wire(cls, raw: Any) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


class TaskColor(StrEnum):
    """
    Card color tag (fixed palette).

    Notes:
    - Older clients stored Tailwind class strings such as
      "bg-blue-50 border-blue-200 text-blue-900"; from_wire maps those back
      to the tag. Only the tag is ever written.
    """

    BLUE = "blue"
    GREEN = "green"
    AMBER = "amber"
    ROSE = "rose"
    INDIGO = "indigo"
    PURPLE = "purple"

    @classmethod
    def from_wire(cls, raw: Any) -> TaskColor:
        if not raw:
            return cls.BLUE
        s = str(raw).strip().lower()
        try:
            return cls(s)
        except ValueError:
            pass
        # "bg-<color>-50 ..." -> "<color>"
        first = s.split()[0] if s.split() else ""
        parts = first.split("-")
        if len(parts) >= 2 and parts[0] == "bg":
            try:
                return cls(parts[1])
            except ValueError:
                pass
        return cls.BLUE


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    priority: Priority
    color: TaskColor
    created_at: int  # epoch milliseconds, write-once
    order_index: int


@dataclass(slots=True, frozen=True)
class TaskDraft:
    """User input for a new task; defaults match an empty form."""

    title: str = "Untitled"
    description: str = ""
    priority: Priority = Priority.MEDIUM
    color: TaskColor = TaskColor.BLUE


def new_task_id() -> str:
    return uuid.uuid4().hex[:9]


def now_ms() -> int:
    return int(time.time() * 1000)


def coerce_created_at(raw: Any) -> int:
    """
    The store may hand back the creation timestamp as int, float, a numeric
    string or (after manual edits in the dashboard) an ISO-8601 string.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        return int(raw)
    s = str(raw).strip()
    if not s:
        return 0
    try:
        return int(float(s))
    except ValueError:
        pass
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable created_at=%r; using 0", raw)
        return 0
    return int(dt.timestamp() * 1000)


def task_from_row(row: dict[str, Any]) -> Task:
    """Wire row (snake_case columns) -> in-memory Task."""
    created_raw = row.get("created_at")
    if created_raw is None:
        created_raw = row.get("createdAt")
    try:
        order_index = int(row.get("order_index") or 0)
    except (TypeError, ValueError):
        order_index = 0
    return Task(
        id=str(row["id"]),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        priority=Priority.from_wire(row.get("priority")),
        color=TaskColor.from_wire(row.get("color")),
        created_at=coerce_created_at(created_raw),
        order_index=order_index,
    )


def task_to_row(task: Task) -> dict[str, Any]:
    """In-memory Task -> full wire row (used by insert and bulk upsert)."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "color": task.color.value,
        "priority": task.priority.value,
        "created_at": int(task.created_at),
        "order_index": int(task.order_index),
    }


def fields_to_row(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Editable fields -> partial wire row.

    Raises ValueError for anything outside title/description/priority/color,
    so an update can never touch ordering or the creation timestamp.
    """
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"not editable: {', '.join(sorted(unknown))}")
    out: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "priority":
            out[key] = Priority(value).value
        elif key == "color":
            out[key] = TaskColor(value).value
        else:
            out[key] = str(value)
    return out
