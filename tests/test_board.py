# tests/test_board.py

from __future__ import annotations

import asyncio
import json

import pytest

from zenpriority.core.board import (
    MSG_AI_SORT_FAILED,
    MSG_AI_SORT_NOT_SAVED,
    MSG_DELETE_FAILED,
    MSG_ENHANCE_FAILED,
    MSG_LOAD_FAILED,
    MSG_ORDER_NOT_SAVED,
    MSG_SAVE_FAILED,
    BoardController,
)
from zenpriority.core.state import BoardState
from zenpriority.tasks.task_client import TaskStoreClient
from zenpriority.tasks.task_models import Priority, TaskColor, TaskDraft

from .fakes import FailingLLMClient, FakeLLMClient, FakeTaskTable, GatedTaskTable, make_row


def _ids(board: BoardController) -> list[str]:
    return [t.id for t in board.tasks]


def _indices(board: BoardController) -> list[int]:
    return [t.order_index for t in board.tasks]


@pytest.mark.asyncio
async def test_load_populates_sequence(board: BoardController) -> None:
    assert await board.load() is True
    assert _ids(board) == ["A", "B", "C"]
    assert board.state.loading is False
    assert board.state.error is None


@pytest.mark.asyncio
async def test_load_failure_leaves_empty_sequence_and_error(table, board) -> None:
    table.fail_on.add("select")
    assert await board.load() is False
    assert board.tasks == []
    assert board.state.loading is False
    assert board.state.error == MSG_LOAD_FAILED


@pytest.mark.asyncio
async def test_reload_failure_keeps_stale_sequence(table, board) -> None:
    await board.load()
    table.fail_on.add("select")
    await board.load()
    assert _ids(board) == ["A", "B", "C"]
    assert board.state.error == MSG_LOAD_FAILED


@pytest.mark.asyncio
async def test_create_appends_with_next_index(table, board) -> None:
    await board.load()
    task = await board.create(TaskDraft(title="D", priority=Priority.HIGH, color=TaskColor.PURPLE))
    assert task is not None
    assert task.order_index == 3
    assert board.tasks[-1].id == task.id
    assert table.rows[task.id]["order_index"] == 3
    assert table.rows[task.id]["color"] == "purple"
    assert task.created_at > 0


@pytest.mark.asyncio
async def test_create_defaults_match_empty_form(board) -> None:
    task = await board.create(TaskDraft(title=""))
    assert task is not None
    assert task.title == "Untitled"
    assert task.priority is Priority.MEDIUM
    assert task.color is TaskColor.BLUE
    assert task.order_index == 0


@pytest.mark.asyncio
async def test_create_insert_failure_keeps_sequence(table, board) -> None:
    await board.load()
    table.fail_on.add("insert")
    assert await board.create(TaskDraft(title="D")) is None
    assert len(board.tasks) == 3
    assert board.state.error == MSG_SAVE_FAILED


@pytest.mark.asyncio
async def test_edit_merges_without_moving(table, board) -> None:
    await board.load()
    assert await board.edit("B", {"title": "Bee", "color": TaskColor.GREEN}) is True
    assert _ids(board) == ["A", "B", "C"]
    assert board.tasks[1].title == "Bee"
    assert board.tasks[1].order_index == 1
    assert table.rows["B"]["title"] == "Bee"


@pytest.mark.asyncio
async def test_edit_failure_leaves_memory_untouched(table, board) -> None:
    await board.load()
    table.fail_on.add("update")
    assert await board.edit("B", {"title": "Bee"}) is False
    assert board.tasks[1].title == "Task B"
    assert board.state.error == MSG_SAVE_FAILED


@pytest.mark.asyncio
async def test_edit_unknown_task_is_ignored(table, board) -> None:
    await board.load()
    assert await board.edit("nope", {"title": "x"}) is False
    assert "update" not in table.calls


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [{"priority": "urgent"}, {"color": "teal"}, {"order_index": 5}],
)
async def test_edit_invalid_fields_set_error_without_store_call(table, board, fields) -> None:
    await board.load()
    assert await board.edit("A", fields) is False
    assert board.state.error == MSG_SAVE_FAILED
    assert board.tasks[0].priority is Priority.MEDIUM
    assert board.tasks[0].order_index == 0
    assert "update" not in table.calls


@pytest.mark.asyncio
async def test_delete_removes_only_target_without_renumbering(table, board) -> None:
    await board.load()
    assert await board.delete("B") is True
    assert _ids(board) == ["A", "C"]
    assert _indices(board) == [0, 2]
    assert "B" not in table.rows


@pytest.mark.asyncio
async def test_delete_failure_keeps_task(table, board) -> None:
    await board.load()
    table.fail_on.add("delete")
    assert await board.delete("B") is False
    assert _ids(board) == ["A", "B", "C"]
    assert board.state.error == MSG_DELETE_FAILED


@pytest.mark.asyncio
async def test_move_b_to_front_persists_full_sequence(table, board) -> None:
    await board.load()
    assert await board.move(1, 0) is True
    assert _ids(board) == ["B", "A", "C"]
    assert _indices(board) == [0, 1, 2]
    assert table.ordered_ids() == ["B", "A", "C"]


@pytest.mark.asyncio
async def test_move_closes_gaps_left_by_delete(table, board) -> None:
    await board.load()
    await board.delete("A")
    await board.move(1, 0)
    assert _ids(board) == ["C", "B"]
    assert {tid: table.rows[tid]["order_index"] for tid in ("B", "C")} == {"C": 0, "B": 1}


@pytest.mark.asyncio
async def test_move_failure_keeps_optimistic_order(table, board) -> None:
    await board.load()
    table.fail_on.add("upsert")
    assert await board.move(0, 2) is False
    assert _ids(board) == ["B", "C", "A"]
    assert board.state.error == MSG_ORDER_NOT_SAVED
    assert table.ordered_ids() == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_move_is_noop_with_one_task() -> None:
    table = FakeTaskTable([make_row("A", 0)])
    board = BoardController(TaskStoreClient(table), FakeLLMClient())
    await board.load()
    assert await board.move(0, 0) is False
    assert "upsert" not in table.calls


@pytest.mark.asyncio
async def test_smart_sort_applies_model_order_unknown_last(table, board, llm) -> None:
    llm.next_text = json.dumps(["C", "A"])
    await board.load()
    assert await board.smart_sort() is True
    assert _ids(board) == ["C", "A", "B"]
    assert _indices(board) == [0, 1, 2]
    assert table.ordered_ids() == ["C", "A", "B"]
    assert board.state.ai_busy is False


@pytest.mark.asyncio
async def test_smart_sort_sends_id_title_description(board, llm) -> None:
    llm.next_text = "[]"
    await board.load()
    await board.smart_sort()
    (messages, _system) = llm.calls[0]
    payload = json.loads(messages[0]["content"])
    assert [p["id"] for p in payload] == ["A", "B", "C"]
    assert {"id", "title", "description"} <= set(payload[0])


@pytest.mark.asyncio
async def test_smart_sort_malformed_output_keeps_order(table, board, llm) -> None:
    llm.next_text = "Sure! Here is my ranking: C first."
    await board.load()
    assert await board.smart_sort() is True
    assert _ids(board) == ["A", "B", "C"]
    assert board.state.error is None


@pytest.mark.asyncio
async def test_smart_sort_refuses_below_two_tasks() -> None:
    llm = FakeLLMClient('["A"]')
    board = BoardController(TaskStoreClient(FakeTaskTable([make_row("A", 0)])), llm)
    await board.load()
    assert await board.smart_sort() is False
    assert llm.calls == []


@pytest.mark.asyncio
async def test_smart_sort_ai_failure_message(table) -> None:
    board = BoardController(TaskStoreClient(table), FailingLLMClient())
    await board.load()
    assert await board.smart_sort() is False
    assert _ids(board) == ["A", "B", "C"]
    assert board.state.error == MSG_AI_SORT_FAILED
    assert "upsert" not in table.calls


@pytest.mark.asyncio
async def test_smart_sort_save_failure_is_distinguished(table, board, llm) -> None:
    llm.next_text = '["C", "B", "A"]'
    await board.load()
    table.fail_on.add("upsert")
    assert await board.smart_sort() is False
    assert _ids(board) == ["C", "B", "A"]
    assert board.state.error == MSG_AI_SORT_NOT_SAVED


@pytest.mark.asyncio
async def test_enhance_description(board, llm) -> None:
    llm.next_text = "  Draft the plan. Share it with the team. Then celebrate.  "
    assert await board.enhance_description("Plan") == "Draft the plan. Share it with the team."
    assert await board.enhance_description("   ") is None
    assert len(llm.calls) == 1


@pytest.mark.asyncio
async def test_enhance_failure_sets_error(table) -> None:
    board = BoardController(TaskStoreClient(table), FailingLLMClient())
    assert await board.enhance_description("Plan") is None
    assert board.state.error == MSG_ENHANCE_FAILED


@pytest.mark.asyncio
async def test_error_is_single_last_write_wins_and_dismissable(table, board) -> None:
    await board.load()
    table.fail_on.update({"delete", "upsert"})
    await board.delete("A")
    await board.move(0, 1)
    assert board.state.error == MSG_ORDER_NOT_SAVED
    board.dismiss_error()
    assert board.state.error is None


@pytest.mark.asyncio
async def test_observers_see_loading_and_syncing(board) -> None:
    seen: list[BoardState] = []
    board.observers.subscribe(lambda old, new: seen.append(new))
    await board.load()
    assert any(s.loading for s in seen)
    assert any(s.syncing for s in seen)
    assert seen[-1].loading is False
    assert seen[-1].syncing is False


@pytest.mark.asyncio
async def test_overlapping_reorders_last_response_wins() -> None:
    table = GatedTaskTable([make_row("A", 0), make_row("B", 1), make_row("C", 2)])
    board = BoardController(TaskStoreClient(table), FakeLLMClient())
    await board.load()

    first = asyncio.create_task(board.move(0, 2))  # memory: B C A
    await asyncio.sleep(0)
    second = asyncio.create_task(board.move(0, 1))  # memory: C B A
    await asyncio.sleep(0)
    assert len(table.gates) == 2
    assert board.state.syncing is True

    table.gates[1].set()
    await second
    assert board.state.syncing is True  # first write still in flight

    table.gates[0].set()
    await first
    assert board.state.syncing is False

    assert _ids(board) == ["C", "B", "A"]
    # The older bulk write answered last, so its order is what the store keeps.
    assert table.ordered_ids() == ["B", "C", "A"]
