# tests/conftest.py

from __future__ import annotations

from types import SimpleNamespace

import pytest

from zenpriority.core.board import BoardController
from zenpriority.core.state import AppState
from zenpriority.tasks.task_client import TaskStoreClient

from .fakes import FakeLLMClient, FakeTaskTable, make_row


@pytest.fixture()
def settings(tmp_path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="zenpriority-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        tasks_table="tasks",
        store_backend="sqlite",
        llm_models=["test/model"],
    )


@pytest.fixture()
def table() -> FakeTaskTable:
    """Store pre-seeded with A, B, C in that order."""
    return FakeTaskTable([make_row("A", 0), make_row("B", 1), make_row("C", 2)])


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def store(table: FakeTaskTable) -> TaskStoreClient:
    return TaskStoreClient(table)


@pytest.fixture()
def board(store: TaskStoreClient, llm: FakeLLMClient) -> BoardController:
    return BoardController(store, llm)


@pytest.fixture()
def state(settings, table, store, llm, board) -> AppState:
    """AppState wired with the in-memory table and the deterministic LLM."""
    return AppState(settings=settings, llm=llm, table=table, store=store, board=board)
