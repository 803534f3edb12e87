# src/zenpriority/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Awaitable, Callable
from typing import Any, cast

from ..core.state import AppState
from ..tasks.task_models import Priority, Task, TaskColor, TaskDraft
from .render import render_board, render_status

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_FLAGS = ("title", "description", "priority", "color")


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Could not parse command: {e}."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        nparams = len(inspect.signature(handler).parameters)
        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


class UsageError(ValueError):
    pass


def parse_flags(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Split `--name value` flags from positional words."""
    words: list[str] = []
    flags: dict[str, str] = {}
    i = 0
    while i < len(args):
        a = args[i]
        if a.startswith("--"):
            key = a[2:].lower()
            if key not in _FLAGS:
                raise UsageError(f"unknown option {a}")
            if i + 1 >= len(args):
                raise UsageError(f"{a} needs a value")
            flags[key] = args[i + 1]
            i += 2
            continue
        words.append(a)
        i += 1
    return words, flags


def parse_fields(flags: dict[str, str]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, raw in flags.items():
        if key == "priority":
            try:
                fields[key] = Priority(raw.lower())
            except ValueError:
                raise UsageError(
                    f"priority must be one of: {', '.join(p.value for p in Priority)}"
                ) from None
        elif key == "color":
            try:
                fields[key] = TaskColor(raw.lower())
            except ValueError:
                raise UsageError(
                    f"color must be one of: {', '.join(c.value for c in TaskColor)}"
                ) from None
        else:
            fields[key] = raw
    return fields


def resolve_task(state: AppState, ref: str) -> Task | None:
    """A 1-based board position or a task id."""
    tasks = state.board.tasks
    if ref.isdigit():
        pos = int(ref)
        if 1 <= pos <= len(tasks):
            return tasks[pos - 1]
        return None
    return state.board.find(ref)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    board_state = state.board.state
    models = ", ".join(list(getattr(state.llm, "models", []) or [])) or "offline"
    backend = getattr(state.settings, "store_backend", "?")
    return (
        "Status:\n"
        f"  Board: {render_status(board_state)}\n"
        f"  Tasks: {len(board_state.tasks)}\n"
        f"  Store: {backend} (table {state.store.table_name})\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Error: {board_state.error or '-'}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    return render_board(state.board.state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title> [| description] [--priority p] [--color c]
    """
    try:
        words, flags = parse_flags(args)
        fields = parse_fields(flags)
    except UsageError as e:
        return f"Usage error: {e}."

    text = " ".join(words)
    title, _, description = text.partition("|")
    title = fields.pop("title", title).strip()
    description = fields.pop("description", description).strip()
    if not title:
        return "Usage: /add <title> [| description] [--priority low|medium|high] [--color c]"

    draft = TaskDraft(
        title=title,
        description=description,
        priority=fields.get("priority", Priority.MEDIUM),
        color=fields.get("color", TaskColor.BLUE),
    )
    task = await state.board.create(draft)
    if task is None:
        return "Task was not created."
    return f"Added #{task.order_index + 1}: {task.title} <{task.id}>"


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <pos|id> [--title t] [--description d] [--priority p] [--color c]
    """
    try:
        words, flags = parse_flags(args)
        fields = parse_fields(flags)
    except UsageError as e:
        return f"Usage error: {e}."

    if len(words) != 1 or not fields:
        return "Usage: /edit <pos|id> [--title t] [--description d] [--priority p] [--color c]"
    if "title" in fields and not str(fields["title"]).strip():
        return "Title cannot be empty."

    task = resolve_task(state, words[0])
    if task is None:
        return f"No task {words[0]}."
    if await state.board.edit(task.id, fields):
        return f"Updated: {fields.get('title', task.title)}"
    return "Task was not updated."


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete <pos|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task {args[0]}."
    if await state.board.delete(task.id):
        return f"Deleted: {task.title}"
    return "Task was not deleted."


async def cmd_move(state: AppState, args: list[str]) -> str:
    """
    /move <from> <to>   (1-based positions, like dragging a card)
    """
    n = len(state.board.tasks)
    if len(args) != 2 or not all(a.isdigit() for a in args):
        return "Usage: /move <from> <to>"
    if n < 2:
        return "Need at least 2 tasks to reorder."
    src, dst = int(args[0]), int(args[1])
    if not (1 <= src <= n and 1 <= dst <= n):
        return f"Positions must be between 1 and {n}."
    if src == dst:
        return "Nothing to move."
    saved = await state.board.move(src - 1, dst - 1)
    return "Order saved." if saved else "Order changed locally, but not saved."


async def cmd_sort(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(state.board.tasks) < 2:
        return "Smart sort needs at least 2 tasks."
    if state.board.state.ai_busy:
        return "Smart sort is already running."
    if emit:
        emit("[AI] Organizing tasks...")
    if await state.board.smart_sort():
        return "Tasks organized by AI.\n" + render_board(state.board.state)
    return "Smart sort did not complete."


async def cmd_enhance(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /enhance <pos|id>   -> draft a description for that task and save it
    /enhance <title>    -> just print a suggested description
    """
    if not args:
        return "Usage: /enhance <pos|id> or /enhance <title>"

    task = resolve_task(state, args[0]) if len(args) == 1 else None
    if task is None and len(args) == 1 and args[0].isdigit():
        return f"No task {args[0]}."
    title = task.title if task is not None else " ".join(args)
    if not title.strip():
        return "Title is empty; nothing to enhance."

    if emit:
        emit("[AI] Thinking...")
    text = await state.board.enhance_description(title)
    if text is None:
        return "No description generated."
    if not text:
        return "The model returned no text."
    if task is None:
        return f"Suggested description: {text}"
    if await state.board.edit(task.id, {"description": text}):
        return f"Description updated: {text}"
    return f"Suggested description (not saved): {text}"


async def cmd_reload(state: AppState, args: list[str]) -> str:
    if await state.board.load():
        return render_board(state.board.state)
    return "Reload failed; showing the tasks already on screen."


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    state.board.dismiss_error()
    return "Error dismissed."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show board/sync status, store backend and models.")
registry.register("list", cmd_list, help_text="Show the board.", aliases=["ls"])
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add <title> [| description] [--priority p] [--color c].",
    aliases=["new"],
)
registry.register(
    "edit",
    cmd_edit,
    help_text="Edit a task: /edit <pos|id> [--title t] [--description d] [--priority p] [--color c].",
)
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <pos|id>.", aliases=["rm"])
registry.register("move", cmd_move, help_text="Reorder (drag): /move <from> <to>.", aliases=["mv"])
registry.register("sort", cmd_sort, help_text="Smart sort with AI (needs 2+ tasks).")
registry.register(
    "enhance", cmd_enhance, help_text="AI description: /enhance <pos|id> | /enhance <title>."
)
registry.register("reload", cmd_reload, help_text="Fetch all tasks from the store again.")
registry.register("dismiss", cmd_dismiss, help_text="Dismiss the error banner.")
