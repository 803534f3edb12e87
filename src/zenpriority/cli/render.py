# src/zenpriority/cli/render.py

from __future__ import annotations

from datetime import datetime

from ..core.state import BoardState
from ..tasks.task_models import Priority, Task, TaskColor

RESET = "\033[0m"

# Every enum member must have an entry; tests check the mappings are exhaustive.
PRIORITY_BADGES: dict[Priority, str] = {
    Priority.LOW: "\033[2m[LOW ]\033[0m",
    Priority.MEDIUM: "\033[34m[MED ]\033[0m",
    Priority.HIGH: "\033[1;31m[HIGH]\033[0m",
}

COLOR_SWATCHES: dict[TaskColor, str] = {
    TaskColor.BLUE: "\033[34m",
    TaskColor.GREEN: "\033[32m",
    TaskColor.AMBER: "\033[33m",
    TaskColor.ROSE: "\033[91m",
    TaskColor.INDIGO: "\033[94m",
    TaskColor.PURPLE: "\033[35m",
}


def format_created(created_at: int) -> str:
    if created_at <= 0:
        return "-"
    return datetime.fromtimestamp(created_at / 1000).astimezone().strftime("%Y-%m-%d")


def render_task(position: int, task: Task, *, color: bool = True) -> str:
    badge = PRIORITY_BADGES[task.priority] if color else f"[{task.priority.value.upper()}]"
    swatch = f"{COLOR_SWATCHES[task.color]}●{RESET}" if color else f"({task.color.value})"
    desc = task.description or "No description provided."
    return (
        f"{position:>3}. {swatch} {badge} {task.title}  "
        f"<{task.id}, {format_created(task.created_at)}>\n"
        f"       {desc}"
    )


def render_board(state: BoardState, *, color: bool = True) -> str:
    if state.loading and not state.tasks:
        return "Loading tasks..."
    if not state.tasks:
        return "No tasks yet. Add the first one with /add <title>."
    lines = [render_task(i, t, color=color) for i, t in enumerate(state.tasks, start=1)]
    return "\n".join(lines)


def render_status(state: BoardState) -> str:
    flags = []
    if state.loading:
        flags.append("loading")
    if state.syncing:
        flags.append("syncing")
    if state.ai_busy:
        flags.append("AI busy")
    return ", ".join(flags) or "idle"
