# src/zenpriority/tasks/ordering.py

"""
Ordering engine: pure functions over the task sequence.

The list position is the source of truth for display order. Every reorder
(manual move or AI-suggested order) ends with reindex(), which rewrites
order_index for the whole sequence so it matches the position exactly.

Deletion deliberately does not renumber: gaps in order_index are tolerated
until the next reorder writes the full sequence.

All functions return new lists and never mutate Task objects in place.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from .task_models import EDITABLE_FIELDS, Priority, Task, TaskColor


def reindex(seq: Iterable[Task]) -> list[Task]:
    return [t if t.order_index == i else replace(t, order_index=i) for i, t in enumerate(seq)]


def next_order_index(seq: Sequence[Task]) -> int:
    return len(seq)


def append_task(seq: Sequence[Task], task: Task) -> list[Task]:
    return [*seq, task]


def move(seq: Sequence[Task], source: int, target: int) -> list[Task]:
    """
    Single-element move: take the item at `source` out, reinsert at `target`.

    Items between the two positions shift by one slot; everything else keeps
    its place. Fewer than 2 tasks or source == target is a no-op.
    """
    n = len(seq)
    if n < 2:
        return list(seq)
    if not (0 <= source < n) or not (0 <= target < n):
        raise IndexError(f"move {source}->{target} out of range for {n} tasks")
    if source == target:
        return list(seq)

    out = list(seq)
    item = out.pop(source)
    out.insert(target, item)
    return reindex(out)


def apply_id_order(seq: Sequence[Task], ids: Iterable[Any]) -> list[Task]:
    """
    Order tasks as their ids appear in `ids` (AI-suggested order).

    - tasks missing from `ids` go after all listed ones, in prior relative order
    - ids that match no task are ignored
    - a duplicated id counts at its first occurrence
    """
    # Dense ranks: every listed id ranks below len(rank).
    rank: dict[str, int] = {}
    for raw in ids:
        rank.setdefault(str(raw), len(rank))

    unknown = len(rank)
    # sorted() is stable, so equal ranks (the unknown tail) keep prior order.
    ordered = sorted(seq, key=lambda t: rank.get(t.id, unknown))
    return reindex(ordered)


def remove_task(seq: Sequence[Task], task_id: str) -> list[Task]:
    return [t for t in seq if t.id != task_id]


def merge_fields(seq: Sequence[Task], task_id: str, fields: dict[str, Any]) -> list[Task]:
    """Apply an edit in place: same position, same order_index."""
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"not editable: {', '.join(sorted(unknown))}")

    clean: dict[str, Any] = dict(fields)
    if "priority" in clean:
        clean["priority"] = Priority(clean["priority"])
    if "color" in clean:
        clean["color"] = TaskColor(clean["color"])

    return [replace(t, **clean) if t.id == task_id else t for t in seq]


def find_index(seq: Sequence[Task], task_id: str) -> int | None:
    for i, t in enumerate(seq):
        if t.id == task_id:
            return i
    return None
