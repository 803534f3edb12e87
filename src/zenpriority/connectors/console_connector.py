# src/zenpriority/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.render import render_board
from ..core.state import AppState, BoardState

logger = logging.getLogger(__name__)

PROMPT = ">>> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def describe_transition(old: BoardState, new: BoardState) -> list[str]:
    """Indicator lines for a state change (loading spinner, sync badge, AI badge, banner)."""
    lines: list[str] = []
    if new.loading != old.loading:
        lines.append("[LOADING] Fetching tasks..." if new.loading else f"[LOADING] Done ({len(new.tasks)} tasks).")
    if new.syncing != old.syncing:
        lines.append("[SYNC] Syncing..." if new.syncing else "[SYNC] Idle.")
    if new.ai_busy and not old.ai_busy:
        lines.append("[AI] Working...")
    if new.error and new.error != old.error:
        lines.append(f"[ERROR] {new.error}  (use /dismiss)")
    return lines


def _bind_indicators(state: AppState) -> None:
    def on_change(old: BoardState, new: BoardState) -> None:
        for line in describe_transition(old, new):
            _print_ts(line)

    state.board.observers.subscribe(on_change)


async def _run_command(state: AppState, line: str) -> None:
    try:
        response = await command_registry.handle(state, line, emit=_print_ts)
    except Exception:
        logger.exception("Command handler crashed: %r", line)
        response = "Internal error while handling a command."

    if response is None:
        response = "Commands start with '/'. Use /help to list available commands."
    _print_ts(response)


async def run_console_loop(state: AppState) -> None:
    """
    Console UI for the board.

    Each command runs as its own asyncio task, so a slow remote call
    (smart sort, a hung upsert) does not block the next command.
    """
    logger.info("Console connector started.")
    _bind_indicators(state)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.")

    pending: set[asyncio.Task[None]] = set()

    async def initial_load() -> None:
        await state.board.load()
        _print_ts("\n" + render_board(state.board.state))

    first = asyncio.create_task(initial_load())
    pending.add(first)
    first.add_done_callback(pending.discard)

    while True:
        try:
            line = (await asyncio.to_thread(input, PROMPT)).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print(file=sys.stderr)
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        job = asyncio.create_task(_run_command(state, line))
        pending.add(job)
        job.add_done_callback(pending.discard)

    if pending:
        _print_ts(f"Waiting for {len(pending)} pending action(s)...")
        await asyncio.gather(*pending, return_exceptions=True)

    logger.info("Console connector finished.")
