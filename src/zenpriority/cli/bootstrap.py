# src/zenpriority/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the task table backend (hosted Supabase table or local SQLite file),
- picks the LLM client (OpenRouter, or the offline stand-in without a key),
- wires the store client and the board controller into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.board import BoardController
from ..core.ports import LLMClient, TaskTable
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..tasks.remote_store import SupabaseTaskTable
from ..tasks.task_client import TaskStoreClient
from ..tasks.task_store import SQLiteTaskTable

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_task_table(settings) -> TaskTable:
    if settings.store_backend == "supabase":
        logger.info("Task store: Supabase table=%s url=%s", settings.tasks_table, settings.supabase_url)
        return SupabaseTaskTable(
            base_url=settings.supabase_url,
            api_key=settings.supabase_key or "",
            name=settings.tasks_table,
            connect_timeout=settings.store_connect_timeout,
            read_timeout=settings.store_read_timeout,
        )
    logger.info("Task store: SQLite db=%s", settings.tasks_db_path)
    return SQLiteTaskTable(settings.tasks_db_path, name=settings.tasks_table)


def build_llm_client(settings) -> LLMClient:
    try:
        return OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # Demo / local runs without an API key.
        logger.info("LLM: %s Using offline client.", e)
        return OfflineLLMClient()


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    table = build_task_table(settings)
    llm = build_llm_client(settings)
    store = TaskStoreClient(table)

    return AppState(
        settings=settings,
        llm=llm,
        table=table,
        store=store,
        board=BoardController(store, llm),
    )
